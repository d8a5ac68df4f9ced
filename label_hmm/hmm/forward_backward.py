"""
Forward-backward algorithm (posterior decoding).

For an observed sequence o_1..o_n the result holds n+1 columns each:

- forward[t][s]:   P(o_1..o_t, state s at t), column 0 is the initial distribution
- backward[t][s]:  P(o_t+1..o_n | state s at t), column n is all ones
- posterior[t][s]: P(state s at t | o_1..o_n)

The state at t = 1 is drawn from the initial distribution and emits o_1 with
no transition in between, the same convention as Viterbi and the hidden-path
likelihoods. Column 0 of forward, backward and posterior is a boundary column
that does not correspond to an observation.

With normalization on (the default) every forward and backward column except
backward[n] is rescaled to sum to 1.0 to avoid underflow. The divisors of the
forward columns are kept in ``scales`` so that the sequence probability can be
reconstructed as ``prod(scales) * sum(forward[n])``.

References:
    Rabiner, L. R. (1989). A tutorial on hidden Markov models and selected
    applications in speech recognition. Proceedings of the IEEE, 77(2), 257-286.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .model import HiddenMarkovModel
from ..config import get_config
from ..exceptions import EmptySequence
from ..logger import get_logger
from ..table.probabilities import safe_log

logger = get_logger(__name__)


@dataclass
class ForwardBackwardResult:
    """Forward, backward and posterior columns for one observed sequence."""
    states: List[Hashable]
    forward: List[Dict[Hashable, float]]
    backward: List[Dict[Hashable, float]]
    posterior: List[Dict[Hashable, float]]
    scales: List[float]
    forward_matrix: np.ndarray = field(repr=False)
    backward_matrix: np.ndarray = field(repr=False)
    posterior_matrix: np.ndarray = field(repr=False)

    @property
    def log_likelihood(self) -> float:
        """Natural log of P(observations | model)."""
        return sum(safe_log(scale) for scale in self.scales) + safe_log(float(self.forward_matrix[-1].sum()))

    @property
    def probability(self) -> float:
        """P(observations | model); may underflow to 0.0 for long sequences."""
        return math.exp(self.log_likelihood)


def _rescale(column: np.ndarray) -> Tuple[np.ndarray, float]:
    """Divide a column by its sum; all-zero columns are returned unchanged with scale 0."""
    total = float(column.sum())
    if total > 0:
        return column / total, total
    return column, 0.0


def _as_columns(states: Sequence[Hashable], matrix: np.ndarray) -> List[Dict[Hashable, float]]:
    return [{state: float(value) for state, value in zip(states, row)} for row in matrix]


def _prepare(model: HiddenMarkovModel, observations: Iterable[Hashable]):
    observations = list(observations)
    if not observations:
        raise EmptySequence("Forward-backward needs at least one observation")
    return (observations,
            model.initial_vector(),
            model.transition_matrix(),
            model.emission_columns(observations))


def _forward_pass(initial: np.ndarray, transitions: np.ndarray, emissions: np.ndarray,
                  normalize: bool) -> Tuple[np.ndarray, np.ndarray]:
    """Forward columns 0..n and the scale removed from each one."""
    n = emissions.shape[1]
    forward = np.zeros((n + 1, initial.shape[0]))
    scales = np.ones(n + 1)

    column = initial.astype(float)
    if normalize:
        column, scales[0] = _rescale(column)
    forward[0] = column

    for t in range(1, n + 1):
        if t == 1:
            # the initial state emits o_1 directly
            column = forward[0] * emissions[:, 0]
        else:
            # sum over predecessors, then emit o_t
            column = (forward[t - 1] @ transitions) * emissions[:, t - 1]
        if normalize:
            column, scales[t] = _rescale(column)
        forward[t] = column

    return forward, scales


def _backward_pass(transitions: np.ndarray, emissions: np.ndarray, normalize: bool) -> np.ndarray:
    """Backward columns 0..n; column n is the all-ones identity and is never rescaled."""
    n = emissions.shape[1]
    backward = np.zeros((n + 1, transitions.shape[0]))
    backward[n] = 1.0

    for t in range(n - 1, -1, -1):
        column = transitions @ (emissions[:, t] * backward[t + 1])
        if normalize:
            column, _ = _rescale(column)
        backward[t] = column

    return backward


def forward_backward(model: HiddenMarkovModel, observations: Iterable[Hashable],
                     normalize: Optional[bool] = None) -> ForwardBackwardResult:
    """
    Compute forward, backward and posterior columns for an observed sequence.

    Args:
        model: The HMM to evaluate
        observations: Observed symbols o_1..o_n, n >= 1
        normalize: Rescale columns to sum to 1.0
            (default: ``forward_backward.normalize`` from config)

    Returns:
        ForwardBackwardResult with n+1 columns per matrix

    Raises:
        EmptySequence: If ``observations`` is empty
        UnknownLabel: If the model lacks a probability the recursion needs
    """
    if normalize is None:
        normalize = get_config('forward_backward', 'normalize')

    observations, initial, transitions, emissions = _prepare(model, observations)
    states = model.states

    forward, scales = _forward_pass(initial, transitions, emissions, normalize)
    backward = _backward_pass(transitions, emissions, normalize)

    posterior = forward * backward
    for t in range(posterior.shape[0]):
        posterior[t], _ = _rescale(posterior[t])

    result = ForwardBackwardResult(
        states=list(states),
        forward=_as_columns(states, forward),
        backward=_as_columns(states, backward),
        posterior=_as_columns(states, posterior),
        scales=[float(scale) for scale in scales],
        forward_matrix=forward,
        backward_matrix=backward,
        posterior_matrix=posterior,
    )

    logger.debug(f"Forward-backward completed: n={len(observations)}, "
                 f"log_likelihood={result.log_likelihood:.6f}")
    return result


def sequence_log_likelihood(model: HiddenMarkovModel, observations: Iterable[Hashable]) -> float:
    """Natural log of P(observations | model) via the scaled forward pass."""
    observations, initial, transitions, emissions = _prepare(model, observations)
    forward, scales = _forward_pass(initial, transitions, emissions, normalize=True)
    return sum(safe_log(float(scale)) for scale in scales) + safe_log(float(forward[-1].sum()))


def sequence_probability(model: HiddenMarkovModel, observations: Iterable[Hashable]) -> float:
    """
    P(observations | model), summed over every hidden path.

    Computed without rescaling, so this equals ``sum(forward[n])`` exactly as
    the unscaled recursion defines it. Use ``sequence_log_likelihood`` for
    long sequences.
    """
    observations, initial, transitions, emissions = _prepare(model, observations)
    forward, _ = _forward_pass(initial, transitions, emissions, normalize=False)
    return float(forward[-1].sum())


def total_log_likelihood(model: HiddenMarkovModel, corpus: Iterable[Sequence[Hashable]]) -> float:
    """Sum of log P(sequence | model) over a training corpus."""
    return sum(sequence_log_likelihood(model, observations) for observations in corpus)


def total_likelihood(model: HiddenMarkovModel, corpus: Iterable[Sequence[Hashable]]) -> float:
    """Product of P(sequence | model) over a training corpus."""
    result = 1.0
    for observations in corpus:
        result *= sequence_probability(model, observations)
    return result
