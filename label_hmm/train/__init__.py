"""
Training module.

Baum-Welch re-estimation, iterative training, empirical transition estimation
and synthetic sequence generation.
"""

from .baum_welch import (
    SufficientStatistics,
    baum_welch_step,
    collect_statistics,
    maximize,
    sequence_statistics,
    train_one_step,
    train_one_step_simple
)
from .estimator import (
    GeneratedSequence,
    estimate_from_sequence,
    generate_observation_sequence,
    generate_sequence,
    generate_state_sequence
)
from .trainer import BaumWelchTrainer, TrainingHistory

__all__ = [
    "SufficientStatistics",
    "baum_welch_step",
    "collect_statistics",
    "maximize",
    "sequence_statistics",
    "train_one_step",
    "train_one_step_simple",
    "GeneratedSequence",
    "estimate_from_sequence",
    "generate_observation_sequence",
    "generate_sequence",
    "generate_state_sequence",
    "BaumWelchTrainer",
    "TrainingHistory"
]
