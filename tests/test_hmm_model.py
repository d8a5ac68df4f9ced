"""
Unit tests for HiddenMarkovModel.

Tests cover construction, strict lookups, hidden path likelihoods,
validation and the dense views used by the inference algorithms.
"""

import math

import numpy as np
import pytest

from label_hmm.exceptions import EmptySequence, LengthMismatch, MalformedDistribution, UnknownLabel
from label_hmm.hmm.model import HiddenMarkovModel
from label_hmm.table.probabilities import TableBuilder
from label_hmm.table.sampling import WeightedOutcome


class TestHiddenMarkovModelInitialization:
    """Test model construction."""

    def test_states_and_observations(self, weather_hmm):
        """Test label sets derived from the tables."""
        assert weather_hmm.states == ['Sunny', 'Rainy', 'Foggy']
        assert weather_hmm.observations == ['Umbrella', 'NoUmbrella']

    def test_initial_from_outcomes(self, coin_hmm):
        """Test that weighted outcomes and pairs are accepted."""
        from_outcomes = HiddenMarkovModel(
            [WeightedOutcome('Fair', 0.5), WeightedOutcome('UnFair', 0.5)],
            coin_hmm.state_transitions, coin_hmm.observation_probabilities
        )
        from_pairs = HiddenMarkovModel(
            [('Fair', 0.5), ('UnFair', 0.5)],
            coin_hmm.state_transitions, coin_hmm.observation_probabilities
        )

        assert from_outcomes.initial_probabilities == coin_hmm.initial_probabilities
        assert from_pairs.initial_probabilities == coin_hmm.initial_probabilities

    def test_duplicate_initial_state(self, coin_hmm):
        """Test that a state cannot start twice."""
        with pytest.raises(ValueError):
            HiddenMarkovModel([('Fair', 0.5), ('Fair', 0.5)],
                              coin_hmm.state_transitions, coin_hmm.observation_probabilities)

    def test_tables_are_copied(self):
        """Test that later changes to the input tables do not leak into the model."""
        transitions = TableBuilder().add('x', 'x', 1.0).build()
        emissions = TableBuilder().add('x', 'o', 1.0).build()
        model = HiddenMarkovModel({'x': 1.0}, transitions, emissions)

        transitions.set('x', 'x', 0.5)

        assert model.transition_probability('x', 'x') == 1.0


class TestLookups:
    """Test strict probability lookups."""

    def test_starting_probability(self, weather_hmm):
        """Test initial probability lookup."""
        assert weather_hmm.starting_probability_of('Foggy') == pytest.approx(1.0 / 3.0)

    def test_unknown_starting_state(self, weather_hmm):
        """Test that an unknown start state raises."""
        with pytest.raises(UnknownLabel):
            weather_hmm.starting_probability_of('Snowy')

    def test_emission_and_transition(self, weather_hmm):
        """Test table shortcuts."""
        assert weather_hmm.emission_probability('Rainy', 'Umbrella') == 0.8
        assert weather_hmm.transition_probability('Foggy', 'Rainy') == 0.3

    def test_unknown_observation(self, weather_hmm):
        """Test that an unknown observation raises."""
        with pytest.raises(UnknownLabel):
            weather_hmm.emission_probability('Rainy', 'Raincoat')


class TestHiddenPathLikelihood:
    """Test joint probabilities of hidden paths and observations."""

    def test_likelihood_of_pairs(self, weather_hmm):
        """Test the emission-only product."""
        pairs = [('Sunny', 'NoUmbrella'), ('Rainy', 'Umbrella')]
        assert weather_hmm.likelihood_of(pairs) == pytest.approx(0.9 * 0.8)
        assert weather_hmm.log_likelihood_of(pairs) == pytest.approx(math.log(0.72))

    def test_hidden_state_sequence(self, weather_hmm):
        """Test P(path, observations) including start and transitions."""
        likelihood = weather_hmm.likelihood_of_hidden_state_sequence(
            ['NoUmbrella', 'Umbrella', 'Umbrella'], ['Foggy', 'Rainy', 'Rainy']
        )
        assert likelihood == pytest.approx(0.02688, abs=1e-9)

    def test_hidden_state_sequence_log(self, weather_hmm):
        """Test that the natural-log version agrees."""
        observations = ['NoUmbrella', 'Umbrella', 'Umbrella']
        states = ['Foggy', 'Rainy', 'Rainy']

        assert weather_hmm.log_likelihood_of_hidden_state_sequence(observations, states) == pytest.approx(
            math.log(weather_hmm.likelihood_of_hidden_state_sequence(observations, states))
        )

    def test_length_mismatch(self, weather_hmm):
        """Test that misaligned sequences are rejected."""
        with pytest.raises(LengthMismatch):
            weather_hmm.likelihood_of_hidden_state_sequence(['Umbrella'], ['Rainy', 'Rainy'])

    def test_empty_sequences(self, weather_hmm):
        """Test that empty sequences are rejected."""
        with pytest.raises(EmptySequence):
            weather_hmm.likelihood_of_hidden_state_sequence([], [])


class TestValidation:
    """Test distribution validation."""

    def test_valid_model(self, coin_hmm):
        """Test that a proper HMM validates."""
        assert coin_hmm.validate()

    def test_row_not_summing_to_one(self, weather_hmm):
        """Test that the Rainy transition row (sum 0.9) is reported."""
        with pytest.raises(MalformedDistribution, match="Rainy"):
            weather_hmm.validate()

    def test_tolerance(self, weather_hmm):
        """Test a looser explicit tolerance."""
        assert weather_hmm.validate(tolerance=0.2)

    def test_initial_not_summing_to_one(self, coin_hmm):
        """Test that the initial distribution is checked."""
        model = HiddenMarkovModel({'Fair': 0.5, 'UnFair': 0.6},
                                  coin_hmm.state_transitions, coin_hmm.observation_probabilities)
        with pytest.raises(MalformedDistribution):
            model.validate()


class TestDenseViews:
    """Test array views used by the dynamic programs."""

    def test_initial_vector(self, coin_hmm):
        """Test ordering of the initial vector."""
        np.testing.assert_array_equal(coin_hmm.initial_vector(), [0.5, 0.5])

    def test_transition_matrix(self, coin_hmm):
        """Test that rows follow state order regardless of insertion order within a row."""
        np.testing.assert_array_equal(coin_hmm.transition_matrix(), [[0.9, 0.1], [0.1, 0.9]])

    def test_transition_matrix_is_a_copy(self, coin_hmm):
        """Test that callers cannot modify the cached matrix."""
        matrix = coin_hmm.transition_matrix()
        matrix[0, 0] = 0.0
        assert coin_hmm.transition_matrix()[0, 0] == 0.9

    def test_emission_columns(self, coin_hmm):
        """Test one column per observation."""
        columns = coin_hmm.emission_columns(['Heads', 'Tails', 'Heads'])
        np.testing.assert_array_equal(columns, [[0.5, 0.5, 0.5], [0.6, 0.4, 0.6]])

    def test_sparse_emissions(self):
        """Test that unobserved missing emissions do not matter."""
        transitions = TableBuilder().add_row('x', {'x': 0.5, 'y': 0.5}).add_row('y', {'x': 0.5, 'y': 0.5}).build()
        emissions = TableBuilder().add('x', 'a', 1.0).add('y', 'a', 0.5).add('y', 'b', 0.5).build()
        model = HiddenMarkovModel({'x': 0.5, 'y': 0.5}, transitions, emissions)

        np.testing.assert_array_equal(model.emission_columns(['a']), [[1.0], [0.5]])
        with pytest.raises(UnknownLabel):
            model.emission_columns(['b'])
