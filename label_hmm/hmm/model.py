"""
Hidden Markov Model container.

A HiddenMarkovModel composes an initial state distribution with two
conditional probability tables: state -> state transitions and
state -> observation emissions. Models are immutable once constructed;
training returns a new model instead of updating one in place.
"""

from collections.abc import Mapping
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..config import get_config
from ..exceptions import EmptySequence, LengthMismatch, MalformedDistribution, UnknownLabel
from ..logger import get_logger
from ..table.probabilities import ConditionalProbabilityTable, safe_log
from ..table.sampling import WeightedOutcome

logger = get_logger(__name__)

InitialProbabilities = Union[Mapping, Iterable[WeightedOutcome], Iterable[Tuple[Hashable, float]]]


class HiddenMarkovModel:
    """
    Discrete Hidden Markov Model over arbitrary hashable labels.

    Attributes:
        state_transitions: Table of P(next state | state)
        observation_probabilities: Table of P(observation | state)
        states: Source labels of ``state_transitions``, in insertion order
        observations: Target labels of ``observation_probabilities``
    """

    def __init__(self,
                 initial_probabilities: InitialProbabilities,
                 state_transitions: ConditionalProbabilityTable,
                 observation_probabilities: ConditionalProbabilityTable):
        """
        Initialize the model from pre-built tables.

        Args:
            initial_probabilities: Starting distribution, either a mapping
                ``{state: probability}`` or an iterable of WeightedOutcome
                (or ``(state, probability)`` pairs)
            state_transitions: State -> state table
            observation_probabilities: State -> observation table

        Raises:
            ValueError: If a state appears twice in the initial distribution
        """
        if isinstance(initial_probabilities, Mapping):
            outcomes = [WeightedOutcome(state, probability)
                        for state, probability in initial_probabilities.items()]
        else:
            outcomes = [item if isinstance(item, WeightedOutcome) else WeightedOutcome(*item)
                        for item in initial_probabilities]

        self._initial: Dict[Hashable, float] = {}
        for outcome in outcomes:
            if outcome.label in self._initial:
                raise ValueError(f"State {outcome.label!r} appears twice in the initial probabilities")
            self._initial[outcome.label] = float(outcome.probability)

        self.state_transitions = state_transitions.copy()
        self.observation_probabilities = observation_probabilities.copy()

        self._transition_matrix: Optional[np.ndarray] = None

        logger.debug(f"Initialized HiddenMarkovModel with {len(self.states)} states "
                     f"and {len(self.observations)} observations")

    @property
    def states(self) -> List[Hashable]:
        return self.state_transitions.sources

    @property
    def observations(self) -> List[Hashable]:
        return self.observation_probabilities.targets

    @property
    def initial_probabilities(self) -> List[WeightedOutcome]:
        """Initial distribution as weighted outcomes, in construction order."""
        return [WeightedOutcome(state, probability) for state, probability in self._initial.items()]

    def starting_probability_of(self, state: Hashable) -> float:
        """
        Probability that the hidden chain starts in ``state``.

        Raises:
            UnknownLabel: If ``state`` has no initial probability entry
        """
        try:
            return self._initial[state]
        except KeyError:
            raise UnknownLabel(state, "starting probabilities") from None

    def emission_probability(self, state: Hashable, observation: Hashable) -> float:
        """P(observation | state), strict on both labels."""
        return self.observation_probabilities.given(state).probability_of(observation)

    def transition_probability(self, source: Hashable, target: Hashable) -> float:
        """P(target | source), strict on both labels."""
        return self.state_transitions.given(source).probability_of(target)

    def likelihood_of(self, pairs: Iterable[Tuple[Hashable, Hashable]]) -> float:
        """
        Product of emission probabilities over ``(state, observation)`` pairs.

        Transitions are ignored; this is a building block, not the likelihood
        of a full hidden path.
        """
        result = 1.0
        for state, observation in pairs:
            result *= self.emission_probability(state, observation)
        return result

    def log_likelihood_of(self, pairs: Iterable[Tuple[Hashable, Hashable]]) -> float:
        """Natural-log counterpart of ``likelihood_of``."""
        result = 0.0
        for state, observation in pairs:
            result += safe_log(self.emission_probability(state, observation))
        return result

    def likelihood_of_hidden_state_sequence(self, observations: Sequence[Hashable],
                                            states: Sequence[Hashable]) -> float:
        """
        Joint probability of a hidden path and the observations it emitted.

        P(states, observations) = P(s0) * prod P(s_t | s_t-1) * prod P(o_t | s_t)

        Raises:
            LengthMismatch: If the two sequences differ in length
            EmptySequence: If both sequences are empty
        """
        observations, states = self._aligned(observations, states)
        return (self.starting_probability_of(states[0])
                * self.state_transitions.sequence_likelihood(states)
                * self.likelihood_of(zip(states, observations)))

    def log_likelihood_of_hidden_state_sequence(self, observations: Sequence[Hashable],
                                                states: Sequence[Hashable]) -> float:
        """Natural-log counterpart of ``likelihood_of_hidden_state_sequence``."""
        observations, states = self._aligned(observations, states)
        return (safe_log(self.starting_probability_of(states[0]))
                + self.state_transitions.sequence_log_likelihood(states)
                + self.log_likelihood_of(zip(states, observations)))

    @staticmethod
    def _aligned(observations, states):
        observations, states = list(observations), list(states)
        if len(observations) != len(states):
            raise LengthMismatch(
                f"Number of observations ({len(observations)}) has to match "
                f"the number of states ({len(states)})"
            )
        if not states:
            raise EmptySequence("Cannot score an empty state sequence")
        return observations, states

    def validate(self, tolerance: Optional[float] = None) -> bool:
        """
        Check that the initial distribution and every table row sum to 1.0.

        Args:
            tolerance: Allowed deviation (default: ``sampling.tolerance`` from config)

        Returns:
            bool: True if the model is a valid HMM

        Raises:
            MalformedDistribution: If any distribution is negative or does not sum to 1.0
            UnknownLabel: If a state has no initial probability or emission row
        """
        if tolerance is None:
            tolerance = get_config('sampling', 'tolerance')

        initial_total = sum(self.starting_probability_of(state) for state in self.states)
        if abs(initial_total - 1.0) > tolerance:
            raise MalformedDistribution(f"Initial probabilities sum to {initial_total}, expected 1.0")

        for name, table in (('Transition', self.state_transitions),
                            ('Emission', self.observation_probabilities)):
            for state in self.states:
                row = table.given(state)
                if any(probability < 0 for probability in row.values()):
                    raise MalformedDistribution(f"{name} row of {state!r} contains negative values")
                if abs(row.total() - 1.0) > tolerance:
                    raise MalformedDistribution(
                        f"{name} row of {state!r} sums to {row.total()}, expected 1.0"
                    )

        logger.debug("All model distributions validated successfully")
        return True

    # Dense views used by the dynamic programming algorithms. Rows and
    # columns follow the order of ``self.states``.

    def initial_vector(self) -> np.ndarray:
        """Initial probabilities as an array indexed like ``states``."""
        return np.array([self.starting_probability_of(state) for state in self.states], dtype=float)

    def transition_matrix(self) -> np.ndarray:
        """``A[i, j] = P(states[j] | states[i])``."""
        if self._transition_matrix is None:
            states = self.states
            self._transition_matrix = self.state_transitions.to_matrix(states, states)
        return self._transition_matrix.copy()

    def emission_columns(self, observations: Sequence[Hashable]) -> np.ndarray:
        """
        ``E[i, t] = P(observations[t] | states[i])``.

        Only the observed symbols are looked up, so a sparse emission row
        fails only when one of its missing symbols is actually observed.
        """
        states = self.states
        columns: Dict[Hashable, np.ndarray] = {}
        result = np.zeros((len(states), len(observations)))
        for t, observation in enumerate(observations):
            if observation not in columns:
                columns[observation] = np.array(
                    [self.emission_probability(state, observation) for state in states]
                )
            result[:, t] = columns[observation]
        return result

    def __repr__(self) -> str:
        return (f"HiddenMarkovModel(initial={self._initial!r}, "
                f"transitions={self.state_transitions.to_dict()!r}, "
                f"emissions={self.observation_probabilities.to_dict()!r})")
