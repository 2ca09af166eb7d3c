from __future__ import annotations

"""Span/spike merge into one piecewise derivative (the combined deltas).

A spike (zero-width point) would be an infinitely high, zero-width bar on the
density chart. To draw it, its mass is flattened over the half-intervals to
its neighbours: when you have a-b-c and b is a spike, you get::

    [a, Va]-[mid(a, b), +S/(c-a)]-[mid(b, c), -S/(c-a)]-[c, Vc]

Finding ``a`` and ``c`` is the only part that differs between the plain merge
and the noise-reduced one, so the sweep is shared and the neighbour lookup is
a pluggable :class:`BoundaryEstimator`:

- :class:`PlainBoundaryEstimator` looks at the neighbouring span/spike values
  themselves and extrapolates when there are none.
- :class:`WhitelistBoundaryEstimator` uses the canonical accepted values of
  the spike's source, which gives tighter, less arbitrary widths.

Both are heuristics: the curve approximates the time spent at each value and
is not a physical model.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from continuous_histogram.analysis.cursors import CoalescingCursor, NeighbourCursor
from continuous_histogram.errors import InternalConsistencyError, ResourceLimitError
from continuous_histogram.models.points import (
    CombinedDelta,
    CumulativeDensityPoint,
    DeltaInfo,
    SpanDelta,
    SpikePoint,
)
from continuous_histogram.models.profile import DEFAULT_MAX_POINTS

logger = logging.getLogger(__name__)


class BoundaryEstimator(ABC):
    """Strategy returning the boundaries (lastY, nextY) around a spike."""

    @abstractmethod
    def edges(self, spike: SpikePoint, merger: "DeltaMerger") -> Tuple[float, float]:
        raise NotImplementedError


class PlainBoundaryEstimator(BoundaryEstimator):
    """Boundaries from the span and spike cursors of the merge itself.

    ``nextY`` is the nearest pending span or spike value above the spike.
    Failing that it is extrapolated symmetrically from the last known
    boundary, and with no history at all ``zero_delta_span`` is used as a
    guess. ``lastY`` is the last known boundary, or a mirror of ``nextY``.
    """

    def edges(self, spike: SpikePoint, merger: "DeltaMerger") -> Tuple[float, float]:
        # The current span point is either EQUAL or GREATER.
        possible_next: List[float] = []
        span = merger.spans.current
        if span is not None and span.value > spike.value:
            possible_next.append(span.value)
        else:
            after_span = merger.spans.peek_next_value()
            if after_span is not None:
                possible_next.append(after_span)
        after_spike = merger.spikes.peek_next_value()
        if after_spike is not None:
            possible_next.append(after_spike)

        if possible_next:
            next_y = min(possible_next)
        elif merger.last_y is not None:
            next_y = merger.after_point(merger.last_y, spike.value)
        else:
            # This is an estimate!
            next_y = spike.value + merger.zero_delta_span

        if merger.last_y is not None:
            return merger.last_y, next_y
        return merger.extrapolate_before(spike.value, next_y)


class WhitelistBoundaryEstimator(BoundaryEstimator):
    """Boundaries from the canonical accepted values of each source.

    If accepted values are always ``n`` apart and the spike is at ``v``, this
    returns something close to ``(v - n, v + n)``.

    A source whose accepted set holds nothing but the spike value (eg. one that
    emitted exactly one point) falls back to the union of all sources' accepted
    values, and then to :class:`PlainBoundaryEstimator`.

    Parameters
    ----------
    accepted_by_source:
        Ascending canonical (or regrouped) bin positions per source.
    """

    def __init__(self, accepted_by_source: Mapping[Hashable, Iterable[float]]) -> None:
        self._cursors: Dict[Hashable, NeighbourCursor] = {
            source: NeighbourCursor(points) for source, points in accepted_by_source.items()
        }
        all_points = {p for cursor in self._cursors.values() for p in cursor.points}
        self._global = NeighbourCursor(all_points)
        self._fallback = PlainBoundaryEstimator()

    def edges(self, spike: SpikePoint, merger: "DeltaMerger") -> Tuple[float, float]:
        cursor = self._cursors.get(spike.source_id)
        if cursor is None:
            raise InternalConsistencyError(f"Source {spike.source_id!r} is not known")

        lower, upper = cursor.neighbours(spike.value)
        if lower is None and upper is None:
            lower, upper = self._global.neighbours(spike.value)
            if lower is None and upper is None:
                logger.debug(
                    "No accepted value before or after %s; using the plain estimate", spike.value
                )
                return self._fallback.edges(spike, merger)

        if lower is None:
            return merger.extrapolate_before(spike.value, upper)
        return merger.extrapolate_after(lower, spike.value, upper)


def _coalesce_sorted(values: Sequence[float], weights: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    v = np.asarray(values, dtype=float)
    w = np.asarray(weights, dtype=float)
    order = np.argsort(v, kind="stable")
    unique, inverse = np.unique(v[order], return_inverse=True)
    summed = np.zeros(unique.size, dtype=float)
    np.add.at(summed, inverse, w[order])
    return unique, summed


class DeltaMerger:
    """Two-pointer merge of span deltas and spikes into combined deltas.

    Parameters
    ----------
    delta_info:
        Output of :func:`~continuous_histogram.analysis.deltas.build_delta_info`.
    bounds:
        Optional ``{"minimum": ..., "maximum": ...}``. Extrapolated boundaries
        never leave them.
    estimator:
        Boundary strategy; defaults to :class:`PlainBoundaryEstimator`.
    max_points:
        Emitting more than this many combined deltas raises
        :class:`ResourceLimitError`.
    """

    def __init__(
        self,
        delta_info: DeltaInfo,
        bounds: Optional[Mapping[str, float]] = None,
        estimator: Optional[BoundaryEstimator] = None,
        *,
        max_points: int = DEFAULT_MAX_POINTS,
    ) -> None:
        bounds = bounds or {}
        self.minimum: Optional[float] = bounds.get("minimum")
        self.maximum: Optional[float] = bounds.get("maximum")
        self.zero_delta_span = float(delta_info.zero_delta_span)
        self.estimator = estimator if estimator is not None else PlainBoundaryEstimator()
        self.max_points = int(max_points)

        self.spans: CoalescingCursor[SpanDelta] = CoalescingCursor(
            delta_info.span_deltas,
            weight_of=lambda d: d.delta_weight,
            combine=lambda d, w: SpanDelta(value=d.value, delta_weight=w),
        )
        self.spikes: CoalescingCursor[SpikePoint] = CoalescingCursor(
            delta_info.spike_points,
            weight_of=lambda s: s.span,
            combine=lambda s, w: SpikePoint(value=s.value, span=w, source_id=s.source_id),
        )
        # Last boundary seen by the sweep (a span value or a spike value).
        self.last_y: Optional[float] = None

        self._values: List[float] = []
        self._weights: List[float] = []
        self._combined: Optional[Tuple[CombinedDelta, ...]] = None

    # ------------------------------------------------------------------
    # Boundary helpers
    # ------------------------------------------------------------------

    def after_point(self, last_y: float, current: float, next_y: Optional[float] = None) -> float:
        """Where the next (higher) point would be, not exceeding the maximum."""
        after = next_y if next_y is not None else current + (current - last_y)
        if self.maximum is not None:
            return min(self.maximum, after)
        return after

    def before_point(self, current: float, next_y: float) -> float:
        """Where the previous (lower) point would be, at least the minimum."""
        before = current - (next_y - current)
        if self.minimum is not None:
            return max(self.minimum, before)
        return before

    def extrapolate_after(self, last_y: float, current: float, next_y: Optional[float] = None) -> Tuple[float, float]:
        return last_y, self.after_point(last_y, current, next_y)

    def extrapolate_before(self, current: float, next_y: float) -> Tuple[float, float]:
        return self.before_point(current, next_y), next_y

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def _emit(self, value: float, weight: float) -> None:
        if self._values and self._values[-1] == value:
            self._weights[-1] += weight
            return
        if len(self._values) >= self.max_points:
            raise ResourceLimitError(
                f"Too many combined deltas ({len(self._values) + 1}+)", limit=self.max_points
            )
        self._values.append(value)
        self._weights.append(weight)

    def _add_next_span(self) -> None:
        span = self.spans.current
        if span is not None:
            self._emit(span.value, span.delta_weight)
            self.spans.advance()

    def _add_spike(self) -> None:
        spike = self.spikes.current
        if spike is None:
            raise InternalConsistencyError("No pending spike to resolve")

        last_y, next_y = self.estimator.edges(spike, self)
        width = next_y - last_y
        if not width > 0:
            raise InternalConsistencyError(
                f"Spike at {spike.value} resolved to an empty interval [{last_y}, {next_y}]"
            )
        height = spike.span / width

        self._emit((last_y + spike.value) / 2, height)
        if self.spans.current is not None and self.spans.current.value == spike.value:
            self._add_next_span()
        self._emit((spike.value + next_y) / 2, -height)

        self.spikes.advance()
        self.last_y = spike.value

    def _build(self) -> Tuple[CombinedDelta, ...]:
        while self.spans.current is not None and self.spikes.current is not None:
            while self.spans.current is not None and self.spans.current.value < self.spikes.current.value:
                # Spans below the pending spike can go straight out.
                self.last_y = self.spans.current.value
                self._add_next_span()
            self._add_spike()

        while self.spans.current is not None:
            self._add_next_span()
        while self.spikes.current is not None:
            self._add_spike()

        values = np.asarray(self._values, dtype=float)
        weights = np.asarray(self._weights, dtype=float)
        if values.size > 1 and np.any(np.diff(values) <= 0):
            logger.debug("Combined deltas emitted out of order; re-sorting %d points", values.size)
            values, weights = _coalesce_sorted(values, weights)

        return tuple(
            CombinedDelta(value=v, delta_weight=w) for v, w in zip(values.tolist(), weights.tolist())
        )

    @property
    def combined(self) -> Tuple[CombinedDelta, ...]:
        """Deltas with all entries of the same value combined, ascending."""
        if self._combined is None:
            self._combined = self._build()
        return self._combined

    @property
    def cumulative(self) -> Tuple[CumulativeDensityPoint, ...]:
        return cumulative_deltas(self.combined)


def cumulative_deltas(combined: Sequence[CombinedDelta]) -> Tuple[CumulativeDensityPoint, ...]:
    """Running sum of combined weights by ascending value."""
    if not combined:
        return ()
    running = np.cumsum([d.delta_weight for d in combined])
    return tuple(
        CumulativeDensityPoint(value=d.value, cumulative_weight=float(f))
        for d, f in zip(combined, running)
    )
