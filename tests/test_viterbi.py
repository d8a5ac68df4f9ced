"""
Tests for Viterbi decoding.
"""

import itertools
import math

import numpy as np
import pytest

from label_hmm.exceptions import EmptySequence, UnknownLabel
from label_hmm.hmm.model import HiddenMarkovModel
from label_hmm.hmm.viterbi import most_likely_state_sequence, viterbi
from label_hmm.table.probabilities import ConditionalProbabilityTable, TableBuilder


class TestPublishedExamples:
    """Test decoding of the textbook examples."""

    def test_weather(self, weather_hmm):
        """Test that no umbrella, umbrella, umbrella decodes to Foggy, Rainy, Rainy."""
        result = viterbi(weather_hmm, ['NoUmbrella', 'Umbrella', 'Umbrella'])

        assert result.path == ['Foggy', 'Rainy', 'Rainy']
        assert result.probability == pytest.approx(0.02688, abs=1e-9)

    def test_coin_toss(self, coin_hmm):
        """Test that heads, tails, heads is blamed on the loaded coin."""
        path = most_likely_state_sequence(coin_hmm, ['Heads', 'Tails', 'Heads'])
        assert path == ['UnFair', 'UnFair', 'UnFair']


class TestOptimality:
    """Test that the decoded path is the best of all paths."""

    def test_exhaustive_two_states_three_observations(self):
        """Test against all 8 hidden paths on random two-state models."""
        rng = np.random.default_rng(5)
        for _ in range(25):
            transitions = ConditionalProbabilityTable()
            emissions = ConditionalProbabilityTable()
            for state in ('x', 'y'):
                for target, p in zip(('x', 'y'), rng.dirichlet([1.0, 1.0])):
                    transitions.set(state, target, p)
                for symbol, p in zip(('a', 'b'), rng.dirichlet([1.0, 1.0])):
                    emissions.set(state, symbol, p)
            initial = dict(zip(('x', 'y'), rng.dirichlet([1.0, 1.0])))
            model = HiddenMarkovModel(initial, transitions, emissions)
            observations = list(rng.choice(['a', 'b'], size=3))

            best = max(
                model.likelihood_of_hidden_state_sequence(observations, path)
                for path in itertools.product(model.states, repeat=3)
            )
            result = viterbi(model, observations)

            assert result.probability == pytest.approx(best, abs=1e-12)
            assert model.likelihood_of_hidden_state_sequence(observations, result.path) == pytest.approx(best)

    def test_ties_go_to_first_state(self):
        """Test that equally likely paths resolve in state order."""
        transitions = TableBuilder().add_row('x', {'x': 0.5, 'y': 0.5}).add_row('y', {'x': 0.5, 'y': 0.5}).build()
        emissions = TableBuilder().add_row('x', {'a': 1.0}).add_row('y', {'a': 1.0}).build()
        model = HiddenMarkovModel({'x': 0.5, 'y': 0.5}, transitions, emissions)

        assert most_likely_state_sequence(model, ['a', 'a', 'a']) == ['x', 'x', 'x']

    def test_single_observation(self, coin_hmm):
        """Test that one observation picks the best emitting state."""
        assert most_likely_state_sequence(coin_hmm, ['Heads']) == ['UnFair']
        assert most_likely_state_sequence(coin_hmm, ['Tails']) == ['Fair']

    def test_long_sequence(self, coin_hmm):
        """Test that rescaling keeps long sequences decodable."""
        result = viterbi(coin_hmm, ['Heads'] * 3000)

        assert result.path == ['UnFair'] * 3000
        expected = math.log(0.5) + 3000 * math.log(0.6) + 2999 * math.log(0.9)
        assert result.log_probability == pytest.approx(expected)


class TestErrors:
    """Test error propagation."""

    def test_empty(self, coin_hmm):
        """Test that at least one observation is required."""
        with pytest.raises(EmptySequence):
            viterbi(coin_hmm, [])

    def test_unknown_observation(self, coin_hmm):
        """Test that unknown symbols raise."""
        with pytest.raises(UnknownLabel):
            most_likely_state_sequence(coin_hmm, ['Heads', 'Edge'])
