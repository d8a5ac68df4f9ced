"""
Probability table module.

Conditional probability tables, weighted sampling and sliding windows for
higher-order label folding.
"""

from .probabilities import ConditionalProbabilityTable, ProbabilityRow, TableBuilder, tables_equal
from .sampling import WeightedOutcome, normalize_outcomes, sample_weighted
from .window import SlidingWindow, combined_states

__all__ = [
    "ConditionalProbabilityTable",
    "ProbabilityRow",
    "TableBuilder",
    "tables_equal",
    "WeightedOutcome",
    "normalize_outcomes",
    "sample_weighted",
    "SlidingWindow",
    "combined_states"
]
