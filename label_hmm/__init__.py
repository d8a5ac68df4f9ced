"""
LabelHMM: discrete Hidden Markov Models over arbitrary labels

A Python library for building, decoding and training Hidden Markov Models
whose states and observations are plain hashable labels.
"""

__version__ = "0.1.0"
__author__ = "LabelHMM Development Team"

from .config import get_config, set_config
from .logger import get_logger
from .exceptions import (
    LabelHMMError,
    UnknownLabel,
    MalformedDistribution,
    LengthMismatch,
    EmptySequence,
    ModelTrainingError
)
from .table import (
    ConditionalProbabilityTable,
    TableBuilder,
    WeightedOutcome,
    SlidingWindow,
    combined_states,
    sample_weighted
)
from .hmm import HiddenMarkovModel, forward_backward, most_likely_state_sequence, viterbi
from .train import (
    BaumWelchTrainer,
    estimate_from_sequence,
    generate_sequence,
    train_one_step,
    train_one_step_simple
)

__all__ = [
    "get_config",
    "set_config",
    "get_logger",
    "LabelHMMError",
    "UnknownLabel",
    "MalformedDistribution",
    "LengthMismatch",
    "EmptySequence",
    "ModelTrainingError",
    "ConditionalProbabilityTable",
    "TableBuilder",
    "WeightedOutcome",
    "SlidingWindow",
    "combined_states",
    "sample_weighted",
    "HiddenMarkovModel",
    "forward_backward",
    "most_likely_state_sequence",
    "viterbi",
    "BaumWelchTrainer",
    "estimate_from_sequence",
    "generate_sequence",
    "train_one_step",
    "train_one_step_simple",
    "__version__"
]
