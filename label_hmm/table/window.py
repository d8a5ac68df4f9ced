"""
Fixed-capacity sliding window over labels.

Used to fold an order-k label sequence into first-order "combined labels"
so that higher-order Markov chains can be estimated with first-order tables.
"""

from typing import Hashable, Iterable, Iterator, List, Optional, Tuple


class SlidingWindow:
    """
    Circular buffer holding at most ``capacity`` labels.

    Once full, every push overwrites the oldest entry. Iteration and
    ``snapshot()`` return the labels oldest first.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"Capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._buffer: List[Optional[Hashable]] = [None] * capacity
        self._first = 0
        self._size = 0

    def push(self, label: Hashable) -> None:
        """Append ``label``, dropping the oldest entry when full."""
        next_index = (self._first + self._size) % self.capacity
        self._buffer[next_index] = label
        if self._size < self.capacity:
            self._size += 1
        else:
            self._first = (self._first + 1) % self.capacity

    @property
    def is_full(self) -> bool:
        return self._size == self.capacity

    def snapshot(self) -> Tuple[Hashable, ...]:
        """Current window contents in insertion order."""
        return tuple(self)

    def __iter__(self) -> Iterator[Hashable]:
        for offset in range(self._size):
            yield self._buffer[(self._first + offset) % self.capacity]

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"SlidingWindow(capacity={self.capacity}, contents={list(self)!r})"


def combined_states(labels: Iterable[Hashable], order: int) -> List[Tuple[Hashable, ...]]:
    """
    Fold a sequence into its overlapping windows of length ``order``.

    A sequence of n labels yields n - order + 1 tuples; shorter sequences yield
    none. Estimating a first-order table over the result models an order-k
    chain.

    Example:
        >>> combined_states(['a', 'b', 'c', 'd'], 2)
        [('a', 'b'), ('b', 'c'), ('c', 'd')]
    """
    window = SlidingWindow(order)
    result = []
    for label in labels:
        window.push(label)
        if window.is_full:
            result.append(window.snapshot())
    return result
