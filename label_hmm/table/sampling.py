"""
Weighted choice over labeled outcomes.

Turns a weighted set of labels into a single sampled label given a uniform
draw in [0, 1).
"""

from dataclasses import dataclass
from typing import Any, Hashable, Iterable, List, Optional

from ..config import get_config
from ..exceptions import MalformedDistribution


@dataclass(frozen=True)
class WeightedOutcome:
    """A label together with its (not necessarily normalized) probability."""
    label: Hashable
    probability: float

    def __post_init__(self):
        if self.probability < 0:
            raise MalformedDistribution(
                f"Probability of {self.label!r} must be >= 0, got {self.probability}"
            )


def normalize_outcomes(outcomes: Iterable[WeightedOutcome]) -> List[WeightedOutcome]:
    """
    Rescale outcome probabilities so they sum to 1.0.

    Raises:
        MalformedDistribution: If the outcomes are empty or their total is zero
    """
    outcomes = list(outcomes)
    total = sum(outcome.probability for outcome in outcomes)
    if total <= 0:
        raise MalformedDistribution(f"Cannot normalize outcomes with total probability {total}")
    return [WeightedOutcome(outcome.label, outcome.probability / total) for outcome in outcomes]


def sample_weighted(outcomes: Iterable[WeightedOutcome], draw: float,
                    tolerance: Optional[float] = None) -> Any:
    """
    Select the label whose cumulative probability band contains ``draw``.

    Outcomes are sorted ascending by probability (stable, so equal weights keep
    their given order) and the first outcome whose cumulative probability
    exceeds the draw wins.

    Args:
        outcomes: Weighted labels; probabilities must sum to 1.0 within tolerance
        draw: Uniform draw in [0, 1)
        tolerance: Allowed deviation of the total from 1.0
            (default: ``sampling.tolerance`` from config)

    Returns:
        The selected label

    Raises:
        MalformedDistribution: If the draw is outside [0, 1), the outcomes are
            empty, or their total is not within tolerance of 1.0
    """
    if tolerance is None:
        tolerance = get_config('sampling', 'tolerance')

    if not 0.0 <= draw < 1.0:
        raise MalformedDistribution(f"Draw has to be in [0.0, 1.0) but was {draw}")

    ordered = sorted(outcomes, key=lambda outcome: outcome.probability)
    if not ordered:
        raise MalformedDistribution("Cannot sample from an empty set of outcomes")

    cumulative = []
    total = 0.0
    for outcome in ordered:
        total += outcome.probability
        cumulative.append(total)

    if abs(total - 1.0) > tolerance:
        raise MalformedDistribution(f"Probabilities have to sum up to 1.0 but was {total}")

    for outcome, upper in zip(ordered, cumulative):
        if draw < upper:
            return outcome.label

    # total fell short of 1.0 by rounding and the draw landed in the gap
    return ordered[-1].label
