"""
Test configuration and fixtures for LabelHMM.

This file contains pytest configuration and shared fixtures
for testing the LabelHMM system.
"""

import pytest
import tempfile
from pathlib import Path

from label_hmm.config import reset_config
from label_hmm.hmm.model import HiddenMarkovModel
from label_hmm.table.probabilities import TableBuilder


@pytest.fixture(autouse=True)
def fresh_config():
    """Restore default configuration around every test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def weather_table():
    """Three-state weather Markov chain (the Rainy row sums to 0.9)."""
    return (TableBuilder()
            .add_row('Sunny', {'Sunny': 0.8, 'Rainy': 0.05, 'Foggy': 0.15})
            .add_row('Rainy', {'Sunny': 0.1, 'Rainy': 0.6, 'Foggy': 0.2})
            .add_row('Foggy', {'Sunny': 0.2, 'Rainy': 0.3, 'Foggy': 0.5})
            .build())


@pytest.fixture
def weather_hmm(weather_table):
    """Weather states observed through whether the caretaker carries an umbrella."""
    umbrella_table = (TableBuilder()
                      .add_row('Sunny', {'Umbrella': 0.1, 'NoUmbrella': 0.9})
                      .add_row('Rainy', {'Umbrella': 0.8, 'NoUmbrella': 0.2})
                      .add_row('Foggy', {'Umbrella': 0.3, 'NoUmbrella': 0.7})
                      .build())
    initial = {'Sunny': 1.0 / 3.0, 'Rainy': 1.0 / 3.0, 'Foggy': 1.0 / 3.0}
    return HiddenMarkovModel(initial, weather_table, umbrella_table)


@pytest.fixture
def coin_hmm():
    """Fair and loaded coin that are rarely swapped."""
    coin_table = (TableBuilder()
                  .add_row('Fair', {'UnFair': 0.1, 'Fair': 0.9})
                  .add_row('UnFair', {'Fair': 0.1, 'UnFair': 0.9})
                  .build())
    toss_table = (TableBuilder()
                  .add_row('Fair', {'Heads': 0.5, 'Tails': 0.5})
                  .add_row('UnFair', {'Heads': 0.6, 'Tails': 0.4})
                  .build())
    return HiddenMarkovModel({'Fair': 0.5, 'UnFair': 0.5}, coin_table, toss_table)


@pytest.fixture
def rain_hmm():
    """Two-state umbrella world used to illustrate forward-backward."""
    transitions = (TableBuilder()
                   .add_row('Rain', {'Rain': 0.7, 'No Rain': 0.3})
                   .add_row('No Rain', {'Rain': 0.3, 'No Rain': 0.7})
                   .build())
    emissions = (TableBuilder()
                 .add_row('Rain', {'Umbrella': 0.9, 'No Umbrella': 0.1})
                 .add_row('No Rain', {'Umbrella': 0.2, 'No Umbrella': 0.8})
                 .build())
    return HiddenMarkovModel({'Rain': 0.5, 'No Rain': 0.5}, transitions, emissions)


@pytest.fixture
def st_hmm():
    """Two-state model over the symbols A and B."""
    transitions = (TableBuilder()
                   .add_row('s', {'s': 0.3, 't': 0.7})
                   .add_row('t', {'s': 0.1, 't': 0.9})
                   .build())
    emissions = (TableBuilder()
                 .add_row('s', {'A': 0.4, 'B': 0.6})
                 .add_row('t', {'A': 0.5, 'B': 0.5})
                 .build())
    return HiddenMarkovModel({'s': 0.85, 't': 0.15}, transitions, emissions)


@pytest.fixture
def st_corpus():
    """Ten times ABBA followed by twenty times BAB."""
    return [['A', 'B', 'B', 'A']] * 10 + [['B', 'A', 'B']] * 20


@pytest.fixture
def egg_hmm():
    """Chicken laying eggs depending on a hidden state."""
    transitions = (TableBuilder()
                   .add_row('State 1', {'State 1': 0.5, 'State 2': 0.5})
                   .add_row('State 2', {'State 1': 0.3, 'State 2': 0.7})
                   .build())
    emissions = (TableBuilder()
                 .add_row('State 1', {'No Eggs': 0.3, 'Eggs': 0.7})
                 .add_row('State 2', {'No Eggs': 0.8, 'Eggs': 0.2})
                 .build())
    return HiddenMarkovModel({'State 1': 0.2, 'State 2': 0.8}, transitions, emissions)


@pytest.fixture
def egg_corpus():
    """Nine two-day egg observations."""
    n, e = 'No Eggs', 'Eggs'
    return [[n, n], [n, n], [n, n], [n, n], [n, e], [e, e], [e, n], [n, n], [n, n]]


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
