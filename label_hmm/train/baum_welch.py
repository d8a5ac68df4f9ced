"""
Baum-Welch (EM) re-estimation of HMM parameters.

One call performs exactly one EM step over a training corpus and returns a
new HiddenMarkovModel; the input model is never modified. Iterating until
convergence is the caller's job (see ``label_hmm.train.trainer``).

Two update rules are provided:

- ``train_one_step``: the standard rule built on the scaled forward-backward
  columns. It never decreases the corpus log-likelihood.
- ``train_one_step_simple``: the prefix/suffix formulation described by Moss.
  It recomputes unscaled alpha and beta for every split point, costs O(n^2)
  per sequence and underflows on long sequences. It is kept for comparison
  only and carries no monotonicity guarantee.

References:
    Rabiner, L. R. (1989). A tutorial on hidden Markov models and selected
    applications in speech recognition. Proceedings of the IEEE, 77(2), 257-286.
    Moss, L. S. (2008). Calculations for the Baum-Welch algorithm.
"""

from dataclasses import dataclass
from typing import Hashable, List, Sequence, Tuple

import numpy as np

from ..exceptions import EmptySequence
from ..hmm.forward_backward import forward_backward
from ..hmm.model import HiddenMarkovModel
from ..logger import get_logger
from ..table.probabilities import ConditionalProbabilityTable
from ..table.sampling import WeightedOutcome

logger = get_logger(__name__)

Corpus = Sequence[Sequence[Hashable]]


@dataclass
class SufficientStatistics:
    """
    Expected counts accumulated over a corpus within one EM step.

    Indices follow ``model.states`` (rows) and ``model.observations``
    (emission columns). Statistics from disjoint parts of a corpus can be
    combined with ``merge``.
    """
    initial: np.ndarray
    transitions: np.ndarray
    transitions_away: np.ndarray
    emissions: np.ndarray
    visits: np.ndarray
    n_sequences: int = 0
    log_likelihood: float = 0.0

    @classmethod
    def zeros(cls, n_states: int, n_observations: int) -> 'SufficientStatistics':
        return cls(
            initial=np.zeros(n_states),
            transitions=np.zeros((n_states, n_states)),
            transitions_away=np.zeros(n_states),
            emissions=np.zeros((n_states, n_observations)),
            visits=np.zeros(n_states),
        )

    def merge(self, other: 'SufficientStatistics') -> 'SufficientStatistics':
        """Combine the statistics of two disjoint sets of sequences."""
        return SufficientStatistics(
            initial=self.initial + other.initial,
            transitions=self.transitions + other.transitions,
            transitions_away=self.transitions_away + other.transitions_away,
            emissions=self.emissions + other.emissions,
            visits=self.visits + other.visits,
            n_sequences=self.n_sequences + other.n_sequences,
            log_likelihood=self.log_likelihood + other.log_likelihood,
        )


def _validate_corpus(corpus: Corpus) -> List[List[Hashable]]:
    corpus = [list(observations) for observations in corpus]
    if not corpus:
        raise EmptySequence("Training corpus cannot be empty")
    for seq_idx, observations in enumerate(corpus):
        if not observations:
            raise EmptySequence(f"Sequence {seq_idx} is empty")
    return corpus


def sequence_statistics(model: HiddenMarkovModel,
                        observations: Sequence[Hashable]) -> SufficientStatistics:
    """
    Expected counts contributed by a single observed sequence.

    With forward/backward columns indexed 0..n (column t covers o_1..o_t):

        gamma[t][s]    = posterior[t][s]
        xi[t][s][s']  ~ forward[t][s] * P(s'|s) * P(o_t+1|s') * backward[t+1][s']

    where each xi[t] is normalized to sum to 1.0.
    """
    observations = list(observations)
    states = model.states
    observation_index = {observation: j for j, observation in enumerate(model.observations)}
    n = len(observations)

    result = forward_backward(model, observations, normalize=True)
    forward, backward, gamma = result.forward_matrix, result.backward_matrix, result.posterior_matrix
    transitions = model.transition_matrix()
    emissions = model.emission_columns(observations)

    stats = SufficientStatistics.zeros(len(states), len(observation_index))
    stats.n_sequences = 1
    stats.log_likelihood = result.log_likelihood
    stats.initial += gamma[1]

    for t in range(1, n):
        xi = forward[t][:, np.newaxis] * transitions * (emissions[:, t] * backward[t + 1])[np.newaxis, :]
        total = xi.sum()
        if total > 0:
            xi /= total
        stats.transitions += xi
        stats.transitions_away += gamma[t]

    for t in range(1, n + 1):
        stats.visits += gamma[t]
        stats.emissions[:, observation_index[observations[t - 1]]] += gamma[t]

    return stats


def _divide_rows(numerator: np.ndarray, denominator: np.ndarray, fallback: np.ndarray) -> np.ndarray:
    """Row-wise ``numerator / denominator``; rows with a zero denominator keep ``fallback``."""
    result = fallback.copy()
    for i, total in enumerate(denominator):
        if total > 0:
            result[i] = numerator[i] / total
    return result


def _previous_emissions(model: HiddenMarkovModel) -> np.ndarray:
    """Current emission table as a dense array; absent entries read as 0.0."""
    states, observations = model.states, model.observations
    matrix = np.zeros((len(states), len(observations)))
    for i, state in enumerate(states):
        row = model.observation_probabilities.given(state)
        for j, observation in enumerate(observations):
            matrix[i, j] = row.get(observation, 0.0)
    return matrix


def _build_model(states: List[Hashable], observations: List[Hashable], initial: np.ndarray,
                 transitions: np.ndarray, emissions: np.ndarray) -> HiddenMarkovModel:
    transition_table = ConditionalProbabilityTable()
    emission_table = ConditionalProbabilityTable()
    for i, source in enumerate(states):
        for j, target in enumerate(states):
            transition_table.set(source, target, transitions[i, j])
        for j, observation in enumerate(observations):
            emission_table.set(source, observation, emissions[i, j])

    return HiddenMarkovModel(
        [WeightedOutcome(state, float(initial[i])) for i, state in enumerate(states)],
        transition_table,
        emission_table
    )


def collect_statistics(model: HiddenMarkovModel, corpus: Corpus) -> SufficientStatistics:
    """E-step: expected counts over the whole corpus."""
    corpus = _validate_corpus(corpus)
    stats = SufficientStatistics.zeros(len(model.states), len(model.observations))
    for observations in corpus:
        stats = stats.merge(sequence_statistics(model, observations))
    return stats


def maximize(model: HiddenMarkovModel, stats: SufficientStatistics) -> HiddenMarkovModel:
    """
    M-step: turn expected counts into a new model.

        initial(s)       = sum gamma[1][s] / |corpus|
        transition(s,s') = sum xi[t][s][s'] / sum_{t<n} gamma[t][s]
        emission(s,o)    = sum_{o_t = o} gamma[t][s] / sum_t gamma[t][s]

    States that were never visited keep their previous rows.
    """
    states, observations = model.states, model.observations

    initial = stats.initial / stats.n_sequences
    transitions = _divide_rows(stats.transitions, stats.transitions_away, model.transition_matrix())
    emissions = _divide_rows(stats.emissions, stats.visits, _previous_emissions(model))

    return _build_model(states, observations, initial, transitions, emissions)


def baum_welch_step(model: HiddenMarkovModel, corpus: Corpus) -> Tuple[HiddenMarkovModel, float]:
    """
    One standard Baum-Welch step.

    Returns:
        Tuple of (re-estimated model, corpus log-likelihood under the input model)

    Raises:
        EmptySequence: If the corpus or any of its sequences is empty
        UnknownLabel: If a sequence uses a symbol the model does not know
    """
    stats = collect_statistics(model, corpus)
    new_model = maximize(model, stats)

    logger.debug(f"Baum-Welch step over {stats.n_sequences} sequences: "
                 f"log_likelihood={stats.log_likelihood:.6f}")
    return new_model, stats.log_likelihood


def train_one_step(model: HiddenMarkovModel, corpus: Corpus) -> HiddenMarkovModel:
    """Re-estimate ``model`` from ``corpus`` with one standard Baum-Welch step."""
    new_model, _ = baum_welch_step(model, corpus)
    return new_model


# Non-canonical prefix/suffix variant

def _unscaled_alpha(model: HiddenMarkovModel, prefix: Sequence[Hashable]) -> np.ndarray:
    """alpha over ``prefix``: P(prefix, state s when its last symbol is emitted)."""
    transitions = model.transition_matrix()
    emissions = model.emission_columns(prefix)
    alpha = model.initial_vector() * emissions[:, 0]
    for t in range(1, len(prefix)):
        alpha = (alpha @ transitions) * emissions[:, t]
    return alpha


def _unscaled_beta(model: HiddenMarkovModel, suffix: Sequence[Hashable]) -> np.ndarray:
    """beta for ``suffix``: P(suffix[1:] | state s when suffix[0] is emitted)."""
    transitions = model.transition_matrix()
    emissions = model.emission_columns(suffix)
    beta = np.ones(len(model.states))
    for t in range(len(suffix) - 1, 0, -1):
        beta = transitions @ (emissions[:, t] * beta)
    return beta


def _split_gamma(model: HiddenMarkovModel, prefix: Sequence[Hashable],
                 suffix: Sequence[Hashable], probability: float) -> np.ndarray:
    """P(state s at the end of prefix, state s' at the start of suffix | sequence)."""
    alpha = _unscaled_alpha(model, prefix)
    beta = _unscaled_beta(model, suffix)
    transitions = model.transition_matrix()
    emission = model.emission_columns(suffix[:1])[:, 0]
    return alpha[:, np.newaxis] * transitions * (emission * beta)[np.newaxis, :] / probability


def _split_delta(model: HiddenMarkovModel, prefix: Sequence[Hashable],
                 suffix: Sequence[Hashable], probability: float) -> np.ndarray:
    """P(state s at the end of prefix | sequence)."""
    if suffix:
        return _split_gamma(model, prefix, suffix, probability).sum(axis=1)
    return _unscaled_alpha(model, prefix) / probability


def _normalize_rows(matrix: np.ndarray, fallback: np.ndarray) -> np.ndarray:
    return _divide_rows(matrix, matrix.sum(axis=1), fallback)


def train_one_step_simple(model: HiddenMarkovModel, corpus: Corpus) -> HiddenMarkovModel:
    """
    One Baum-Welch step using the prefix/suffix formulation.

    Every split point of every sequence recomputes alpha over the prefix and
    beta over the suffix from scratch, without scaling. This rule is not the
    reference implementation: prefer ``train_one_step``.

    Raises:
        EmptySequence: If the corpus or any of its sequences is empty
        UnknownLabel: If a sequence uses a symbol the model does not know
    """
    corpus = _validate_corpus(corpus)
    states, observations = model.states, model.observations
    observation_index = {observation: j for j, observation in enumerate(observations)}
    k = len(states)

    transition_counts = np.zeros((k, k))
    emission_counts = np.zeros((k, len(observations)))
    initial_counts = np.zeros(k)

    for seq_idx, sequence in enumerate(corpus):
        probability = float(_unscaled_alpha(model, sequence).sum())
        if probability <= 0:
            logger.warning(f"Sequence {seq_idx} has zero probability under the model, skipping")
            continue
        n = len(sequence)

        for t in range(1, n):
            transition_counts += _split_gamma(model, sequence[:t], sequence[t:], probability)

        for t in range(1, n + 1):
            delta = _split_delta(model, sequence[:t], sequence[t:], probability)
            emission_counts[:, observation_index[sequence[t - 1]]] += delta

        initial_counts += _split_delta(model, sequence[:1], sequence[1:], probability)

    initial_total = initial_counts.sum()
    initial = initial_counts / initial_total if initial_total > 0 else model.initial_vector()
    transitions = _normalize_rows(transition_counts, model.transition_matrix())
    emissions = _normalize_rows(emission_counts, _previous_emissions(model))

    logger.debug(f"Simple Baum-Welch step over {len(corpus)} sequences")
    return _build_model(states, observations, initial, transitions, emissions)
