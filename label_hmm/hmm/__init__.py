"""
Hidden Markov Model module.

Label-based HMM container with forward-backward and Viterbi inference.
"""

from .model import HiddenMarkovModel
from .forward_backward import (
    ForwardBackwardResult,
    forward_backward,
    sequence_log_likelihood,
    sequence_probability,
    total_likelihood,
    total_log_likelihood
)
from .viterbi import ViterbiResult, most_likely_state_sequence, viterbi

__all__ = [
    "HiddenMarkovModel",
    "ForwardBackwardResult",
    "forward_backward",
    "sequence_log_likelihood",
    "sequence_probability",
    "total_likelihood",
    "total_log_likelihood",
    "ViterbiResult",
    "most_likely_state_sequence",
    "viterbi"
]
