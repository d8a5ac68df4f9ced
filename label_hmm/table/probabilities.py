"""
Conditional probability tables.

A ConditionalProbabilityTable maps a source label to a distribution over target
labels. It backs both the state transition table (state -> state) and the
emission table (state -> observation) of a HiddenMarkovModel.

Lookups are strict: asking for a source or a target that was never set raises
UnknownLabel instead of silently returning 0.0.
"""

import math
from collections.abc import Mapping
from typing import Any, Dict, Hashable, Iterator, List, Sequence

import numpy as np

from .sampling import WeightedOutcome
from ..exceptions import UnknownLabel


def safe_log(probability: float) -> float:
    """Natural logarithm that maps 0.0 to -inf instead of raising."""
    if probability <= 0.0:
        return -math.inf
    return math.log(probability)


class ProbabilityRow(Mapping):
    """Read-only view of one source's distribution over targets."""

    def __init__(self, source: Hashable, probabilities: Dict[Hashable, float]):
        self.source = source
        self._probabilities = probabilities

    def probability_of(self, target: Hashable) -> float:
        """
        Probability of ``target`` given this row's source.

        Raises:
            UnknownLabel: If no probability was ever set for ``target``
        """
        try:
            return self._probabilities[target]
        except KeyError:
            raise UnknownLabel(target, f"distribution of {self.source!r}") from None

    def __getitem__(self, target: Hashable) -> float:
        return self.probability_of(target)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._probabilities)

    def __len__(self) -> int:
        return len(self._probabilities)

    def total(self) -> float:
        """Sum of all probabilities in this row."""
        return sum(self._probabilities.values())

    def __repr__(self) -> str:
        return f"ProbabilityRow({self.source!r}, {self._probabilities!r})"


class ConditionalProbabilityTable:
    """
    Mapping from a source label to a distribution over target labels.

    Rows are not forced to sum to 1.0; call ``normalized()`` to get a table in
    which they do. Iteration order of sources and targets is insertion order.
    """

    def __init__(self):
        self._rows: Dict[Hashable, Dict[Hashable, float]] = {}
        # insertion-ordered set of every label ever used as a target
        self._targets: Dict[Hashable, None] = {}

    @classmethod
    def from_dict(cls, mapping: Dict[Hashable, Dict[Hashable, float]]) -> 'ConditionalProbabilityTable':
        """Build a table from a nested ``{source: {target: probability}}`` mapping."""
        table = cls()
        for source, row in mapping.items():
            for target, probability in row.items():
                table.set(source, target, probability)
        return table

    @property
    def sources(self) -> List[Hashable]:
        """Source labels in insertion order."""
        return list(self._rows)

    @property
    def targets(self) -> List[Hashable]:
        """Union of all target labels, independent of source."""
        return list(self._targets)

    def set(self, source: Hashable, target: Hashable, probability: float) -> None:
        """Set (or overwrite) P(target | source)."""
        self._rows.setdefault(source, {})[target] = float(probability)
        self._targets.setdefault(target, None)

    def given(self, source: Hashable) -> ProbabilityRow:
        """
        Distribution over targets for ``source``.

        Raises:
            UnknownLabel: If ``source`` has no row in this table
        """
        try:
            row = self._rows[source]
        except KeyError:
            raise UnknownLabel(source, "table sources") from None
        return ProbabilityRow(source, row)

    def outcomes_of(self, source: Hashable) -> List[WeightedOutcome]:
        """Row of ``source`` as a list of weighted outcomes, ready for sampling."""
        return [WeightedOutcome(target, probability)
                for target, probability in self.given(source).items()]

    def normalized(self) -> 'ConditionalProbabilityTable':
        """
        Return a new table where every row sums to 1.0.

        Rows with a zero total are copied unchanged.
        """
        result = ConditionalProbabilityTable()
        for source, row in self._rows.items():
            total = sum(row.values())
            for target, probability in row.items():
                result.set(source, target, probability / total if total > 0 else probability)
        # keep targets that only appeared in other rows
        for target in self._targets:
            result._targets.setdefault(target, None)
        return result

    def sequence_likelihood(self, labels: Sequence[Hashable]) -> float:
        """
        Likelihood of a label sequence under the first-order Markov assumption.

        Multiplies P(current | previous) over every adjacent pair. Sequences
        with fewer than two labels have likelihood 1.0.
        """
        labels = list(labels)
        result = 1.0
        for previous, current in zip(labels, labels[1:]):
            result *= self.given(previous).probability_of(current)
        return result

    def sequence_log_likelihood(self, labels: Sequence[Hashable]) -> float:
        """
        Natural-log likelihood of a label sequence; avoids underflow on long
        sequences. Sequences with fewer than two labels give 0.0.
        """
        labels = list(labels)
        result = 0.0
        for previous, current in zip(labels, labels[1:]):
            result += safe_log(self.given(previous).probability_of(current))
        return result

    def to_matrix(self, sources: Sequence[Hashable], targets: Sequence[Hashable]) -> np.ndarray:
        """
        Dense ``len(sources) x len(targets)`` array of probabilities.

        Every (source, target) cell goes through the strict lookup, so a
        missing entry raises UnknownLabel.
        """
        matrix = np.zeros((len(sources), len(targets)))
        for i, source in enumerate(sources):
            row = self.given(source)
            for j, target in enumerate(targets):
                matrix[i, j] = row.probability_of(target)
        return matrix

    def to_dict(self) -> Dict[Hashable, Dict[Hashable, float]]:
        """Nested ``{source: {target: probability}}`` copy of the table."""
        return {source: dict(row) for source, row in self._rows.items()}

    def copy(self) -> 'ConditionalProbabilityTable':
        result = ConditionalProbabilityTable.from_dict(self._rows)
        for target in self._targets:
            result._targets.setdefault(target, None)
        return result

    def __contains__(self, source: Any) -> bool:
        return source in self._rows

    def __len__(self) -> int:
        return len(self._rows)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ConditionalProbabilityTable):
            return NotImplemented
        return self._rows == other._rows

    def __repr__(self) -> str:
        return f"ConditionalProbabilityTable({self._rows!r})"


class TableBuilder:
    """
    Builder for ConditionalProbabilityTable.

    Example:
        table = (TableBuilder()
                 .add('Sunny', 'Sunny', 0.8)
                 .add('Sunny', 'Rainy', 0.2)
                 .build())
    """

    def __init__(self):
        self._table = ConditionalProbabilityTable()
        self._built = False

    def add(self, source: Hashable, target: Hashable, probability: float) -> 'TableBuilder':
        """Add the transition ``source -> target`` with the given probability."""
        if self._built:
            raise RuntimeError("TableBuilder.build() was already called")
        self._table.set(source, target, probability)
        return self

    def add_row(self, source: Hashable, probabilities: Dict[Hashable, float]) -> 'TableBuilder':
        """Add every ``target -> probability`` entry for ``source``."""
        for target, probability in probabilities.items():
            self.add(source, target, probability)
        return self

    def build(self) -> ConditionalProbabilityTable:
        """Finish building; the builder cannot be used afterwards."""
        self._built = True
        return self._table


def tables_equal(first: ConditionalProbabilityTable, second: ConditionalProbabilityTable,
                 tolerance: float = 1e-9) -> bool:
    """Compare two tables entry by entry within an absolute tolerance."""
    if set(first.sources) != set(second.sources):
        return False
    for source in first.sources:
        row_a, row_b = first.given(source), second.given(source)
        if set(row_a) != set(row_b):
            return False
        for target in row_a:
            if abs(row_a[target] - row_b[target]) > tolerance:
                return False
    return True
