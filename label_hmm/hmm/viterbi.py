"""
Viterbi algorithm (MAP decoding).

Finds the single hidden-state sequence with the highest joint probability
with the observations.

    delta[0][s] = P(s) * P(o_0 | s)
    delta[t][s] = max_s' (delta[t-1][s'] * P(s | s')) * P(o_t | s)
    psi[t][s]   = the s' achieving that maximum

Ties go to the state that comes first in the model's state order. Each delta
row is divided by its sum before the next step; this leaves every argmax
unchanged and keeps long sequences from underflowing.
"""

import math
from dataclasses import dataclass
from typing import Hashable, Iterable, List

import numpy as np

from .model import HiddenMarkovModel
from ..exceptions import EmptySequence
from ..logger import get_logger
from ..table.probabilities import safe_log

logger = get_logger(__name__)


@dataclass
class ViterbiResult:
    """Most likely hidden path and its joint probability with the observations."""
    path: List[Hashable]
    log_probability: float

    @property
    def probability(self) -> float:
        return math.exp(self.log_probability)


def viterbi(model: HiddenMarkovModel, observations: Iterable[Hashable]) -> ViterbiResult:
    """
    Run the Viterbi dynamic program.

    Args:
        model: The HMM to decode with
        observations: Observed symbols, at least one

    Returns:
        ViterbiResult with one state per observation

    Raises:
        EmptySequence: If ``observations`` is empty
        UnknownLabel: If the model lacks a probability the recursion needs
    """
    observations = list(observations)
    if not observations:
        raise EmptySequence("Viterbi needs at least one observation")

    states = model.states
    n, k = len(observations), len(states)
    transitions = model.transition_matrix()
    emissions = model.emission_columns(observations)

    delta = np.zeros((n, k))
    psi = np.zeros((n, k), dtype=int)
    log_scale = 0.0

    delta[0] = model.initial_vector() * emissions[:, 0]

    for t in range(1, n):
        total = float(delta[t - 1].sum())
        if total > 0:
            delta[t - 1] /= total
            log_scale += math.log(total)

        # candidates[i, j]: best path into states[i] at t-1, then states[i] -> states[j]
        candidates = delta[t - 1][:, np.newaxis] * transitions
        # np.argmax returns the first maximal index, i.e. strict '>' in state order
        best = np.argmax(candidates, axis=0)
        delta[t] = candidates[best, np.arange(k)] * emissions[:, t]
        psi[t] = best

    last = int(np.argmax(delta[n - 1]))
    log_probability = log_scale + safe_log(float(delta[n - 1, last]))

    path_indices = [last]
    for t in range(n - 1, 0, -1):
        path_indices.append(int(psi[t, path_indices[-1]]))
    path_indices.reverse()

    path = [states[i] for i in path_indices]
    logger.debug(f"Viterbi decoded {n} observations, log_probability={log_probability:.6f}")
    return ViterbiResult(path=path, log_probability=log_probability)


def most_likely_state_sequence(model: HiddenMarkovModel, observations: Iterable[Hashable]) -> List[Hashable]:
    """Most likely hidden-state sequence for ``observations``."""
    return viterbi(model, observations).path
