"""
Exception hierarchy for LabelHMM.
"""


class LabelHMMError(Exception):
    """Base exception for LabelHMM."""
    pass


class UnknownLabel(LabelHMMError, KeyError):
    """A state or observation is missing from a table or initial distribution."""

    def __init__(self, label, where: str = "table"):
        self.label = label
        self.where = where
        super().__init__(f"Label {label!r} not found in {where}")

    def __str__(self) -> str:
        # KeyError would otherwise wrap the message in quotes
        return self.args[0]


class MalformedDistribution(LabelHMMError, ValueError):
    """Probabilities that do not form a distribution, or an out-of-range draw."""
    pass


class LengthMismatch(LabelHMMError, ValueError):
    """Sequences that must be aligned have different lengths."""
    pass


class EmptySequence(LabelHMMError, ValueError):
    """An algorithm was given zero observations or an empty corpus."""
    pass


class ModelTrainingError(LabelHMMError):
    """HMM training convergence or numerical issues."""
    pass
