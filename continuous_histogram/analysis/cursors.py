from __future__ import annotations

"""Single-pass index cursors over immutable, value-sorted sequences.

The merger walks several ascending point lists at once. Each walk keeps its
own index into a tuple; the inputs are never mutated.
"""

from typing import Callable, Generic, Iterable, Optional, Sequence, Tuple, TypeVar

from continuous_histogram.errors import InternalConsistencyError

T = TypeVar("T")


class CoalescingCursor(Generic[T]):
    """Cursor yielding one entry per distinct value, with equal values summed.

    Parameters
    ----------
    items:
        Entries sorted ascending by ``value``.
    weight_of:
        Reads the quantity to sum from an entry.
    combine:
        Builds the coalesced entry from the first entry of a run and the
        summed quantity.
    """

    def __init__(
        self,
        items: Sequence[T],
        weight_of: Callable[[T], float],
        combine: Callable[[T, float], T],
    ) -> None:
        self._items: Tuple[T, ...] = tuple(items)
        self._weight_of = weight_of
        self._combine = combine
        self._next_index = 0
        self.current: Optional[T] = None
        self.advance()

    def advance(self) -> None:
        """Replace ``current`` with the next coalesced entry (None when done)."""
        if self._next_index >= len(self._items):
            self.current = None
            return
        head = self._items[self._next_index]
        total = self._weight_of(head)
        i = self._next_index + 1
        while i < len(self._items) and self._items[i].value == head.value:  # type: ignore[attr-defined]
            total += self._weight_of(self._items[i])
            i += 1
        self._next_index = i
        self.current = self._combine(head, total)

    def peek_next_value(self) -> Optional[float]:
        """Value of the entry after ``current``, without consuming anything."""
        if self._next_index >= len(self._items):
            return None
        return self._items[self._next_index].value  # type: ignore[attr-defined]


class NeighbourCursor:
    """Nearest known boundaries around a value, for one source.

    This is designed to be used destructively: queries must come in ascending
    order and points already passed are never revisited.

    There is one per data source because sources may offer different values,
    eg. rainfall in inches on one source and in centimetres on another: after
    converting to cm, the neighbours of 3 are likely 2 and 4 on one, and 2.54
    and 5.08 on the other.
    """

    def __init__(self, points: Iterable[float]) -> None:
        self._points: Tuple[float, ...] = tuple(sorted(set(float(p) for p in points)))
        self._index = 0
        self._last_query: Optional[float] = None

    def __len__(self) -> int:
        return len(self._points)

    @property
    def points(self) -> Tuple[float, ...]:
        """All points, ascending, including those already passed."""
        return self._points

    @property
    def exhausted(self) -> bool:
        return self._index >= len(self._points)

    @property
    def current(self) -> float:
        """The current point to consider (lower than everything after it)."""
        if self.exhausted:
            raise InternalConsistencyError("Neighbour cursor queried after exhaustion")
        return self._points[self._index]

    def advance(self) -> None:
        if self.exhausted:
            raise InternalConsistencyError("Neighbour cursor advanced after exhaustion")
        self._index += 1

    def neighbours(self, value: float) -> Tuple[Optional[float], Optional[float]]:
        """Return (greatest point < value, smallest point > value).

        Points at or below ``value`` are consumed.
        """
        if self._last_query is not None and value < self._last_query:
            raise InternalConsistencyError(
                f"Neighbour cursor is single-pass: queried {value} after {self._last_query}"
            )
        self._last_query = value

        while not self.exhausted and self.current <= value:
            self.advance()

        lower: Optional[float] = None
        for j in (self._index - 1, self._index - 2):
            if j >= 0 and self._points[j] < value:
                lower = self._points[j]
                break
        upper = None if self.exhausted else self.current
        return lower, upper
