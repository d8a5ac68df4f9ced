"""
Empirical estimation from realized sequences and synthetic sequence generation.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, List, Optional

import numpy as np

from ..config import get_config
from ..exceptions import EmptySequence
from ..hmm.model import HiddenMarkovModel
from ..logger import get_logger
from ..table.probabilities import ConditionalProbabilityTable
from ..table.sampling import WeightedOutcome, sample_weighted

logger = get_logger(__name__)


def estimate_from_sequence(states: Iterable[Hashable]) -> ConditionalProbabilityTable:
    """
    Estimate a transition table by counting adjacent pairs.

    Each source row is normalized by the number of transitions leaving that
    source. The last label only gets a row if it also appears earlier with a
    successor.

    Args:
        states: A realized state sequence

    Returns:
        ConditionalProbabilityTable with sources in first-appearance order

    Raises:
        EmptySequence: If ``states`` is empty
    """
    states = list(states)
    if not states:
        raise EmptySequence("Cannot estimate transitions from an empty sequence")

    counts: Dict[Hashable, Dict[Hashable, int]] = defaultdict(lambda: defaultdict(int))
    for source, target in zip(states, states[1:]):
        counts[source][target] += 1

    table = ConditionalProbabilityTable()
    for source, targets in counts.items():
        total = sum(targets.values())
        for target, count in targets.items():
            table.set(source, target, count / total)

    logger.debug(f"Estimated {len(table)} transition rows from {len(states)} states")
    return table


@dataclass
class GeneratedSequence:
    """A hidden state path and the observations emitted along it."""
    states: List[Hashable]
    observations: List[Hashable]

    def __len__(self) -> int:
        return len(self.states)


def _default_random_source():
    return np.random.default_rng(get_config('sampling', 'random_seed'))


def _check_length(length: int) -> None:
    if length < 1:
        raise ValueError(f"Sequence length must be >= 1, got {length}")


def generate_state_sequence(initial: Iterable[WeightedOutcome],
                            table: ConditionalProbabilityTable,
                            random_source: Optional[Any] = None,
                            length: int = 1) -> List[Hashable]:
    """
    Walk a Markov chain for ``length`` states.

    Args:
        initial: Starting distribution
        table: State -> state transitions
        random_source: Object with ``random() -> float`` in [0, 1)
            (default: numpy generator seeded with ``sampling.random_seed``)
        length: Number of states to produce

    Raises:
        ValueError: If ``length`` < 1
        UnknownLabel: If the walk reaches a state without a transition row
    """
    _check_length(length)
    if random_source is None:
        random_source = _default_random_source()

    state = sample_weighted(initial, random_source.random())
    result = [state]
    for _ in range(1, length):
        state = sample_weighted(table.outcomes_of(state), random_source.random())
        result.append(state)
    return result


def generate_sequence(model: HiddenMarkovModel, random_source: Optional[Any] = None,
                      length: int = 1) -> GeneratedSequence:
    """
    Sample a hidden path and its observations from ``model``.

    The initial state is drawn first; every step then emits an observation
    from the current state before drawing the next state.

    Raises:
        ValueError: If ``length`` < 1
        UnknownLabel: If the walk reaches a state without a table row
    """
    _check_length(length)
    if random_source is None:
        random_source = _default_random_source()

    states, observations = [], []
    state = sample_weighted(model.initial_probabilities, random_source.random())
    for step in range(length):
        states.append(state)
        observations.append(
            sample_weighted(model.observation_probabilities.outcomes_of(state), random_source.random())
        )
        if step < length - 1:
            state = sample_weighted(model.state_transitions.outcomes_of(state), random_source.random())

    logger.debug(f"Generated sequence of length {length}")
    return GeneratedSequence(states=states, observations=observations)


def generate_observation_sequence(model: HiddenMarkovModel, random_source: Optional[Any] = None,
                                  length: int = 1) -> List[Hashable]:
    """Observations of ``generate_sequence``; the hidden path is discarded."""
    return generate_sequence(model, random_source, length).observations
