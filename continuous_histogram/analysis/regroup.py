from __future__ import annotations

"""Reattach noise values to the canonical bins they should have been on.

Each source's frequency table is swept in ascending order alongside the
canonical bin list. Values that miss every bin are buffered and, once the
sweep reaches or passes the next bin, their counts are moved onto the nearest
bin. Values stuck in the middle of an unusually wide gap get a new bin at the
midpoint rather than being discarded.

Mass is conserved except for values beyond the last bin by more than the
proximity threshold: those are dropped, recorded in
:attr:`RegroupResult.dropped` and logged.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Mapping, Optional, Sequence

from continuous_histogram.models.points import FrequencyPoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegroupResult:
    """Regrouped frequency tables and any mass that could not be placed.

    Attributes
    ----------
    points_by_source:
        Ascending frequency tables on canonical (or derived midpoint) bins.
    dropped:
        Per source, the points that were dropped past the last bin.
    regrouped:
        Number of noise points moved onto another bin.
    """

    points_by_source: Dict[Hashable, List[FrequencyPoint]]
    dropped: Dict[Hashable, List[FrequencyPoint]] = field(default_factory=dict)
    regrouped: int = 0

    @property
    def dropped_mass(self) -> float:
        return float(sum(p.count for pts in self.dropped.values() for p in pts))


def proximity_threshold(canonical: Sequence[float]) -> float:
    """Mean gap between canonical values: ``(max - min) / (n - 1)``."""
    if len(canonical) < 2:
        return 0.0
    return (canonical[-1] - canonical[0]) / (len(canonical) - 1)


class _SourceRegrouper:
    """Sweep state for one source."""

    def __init__(self, source_id: Hashable, canonical: Sequence[float], threshold: float) -> None:
        self.source_id = source_id
        self.canonical = canonical
        self.threshold = threshold
        self.bins: Dict[float, float] = {}
        self.missed: List[FrequencyPoint] = []
        self.dropped: List[FrequencyPoint] = []
        self.regrouped = 0

    def _add(self, value: float, count: float) -> None:
        self.bins[value] = self.bins.get(value, 0) + count

    def flush(self, previous: Optional[float], next_value: float) -> None:
        """Place buffered points lying between ``previous`` and ``next_value``."""
        if not self.missed:
            return
        if previous is None:
            # Before the first bin: everything leans towards it.
            close_to_next = next_value - self.threshold
            for p in self.missed:
                if p.value > close_to_next:
                    self._add(next_value, p.count)
                else:
                    logger.debug(
                        "Moving noise value %s (%sx) up to %s [%s]",
                        p.value, p.count, close_to_next, next_value,
                    )
                    self._add(close_to_next, p.count)
                self.regrouped += 1
        else:
            mid_point = (previous + next_value) / 2
            close_to_last = min(mid_point, previous + self.threshold)
            close_to_next = max(next_value - self.threshold, mid_point)
            for p in self.missed:
                if p.value < close_to_last:
                    self._add(previous, p.count)
                elif p.value > close_to_next:
                    self._add(next_value, p.count)
                else:
                    logger.debug(
                        "Moving noise value %s (%sx) to [%s] %s [%s]",
                        p.value, p.count, previous, mid_point, next_value,
                    )
                    self._add(mid_point, p.count)
                self.regrouped += 1
        self.missed = []

    def flush_tail(self, last: float) -> None:
        """Attach points past the last bin, or drop them if too far."""
        for p in self.missed:
            if p.value - last <= self.threshold:
                self._add(last, p.count)
                self.regrouped += 1
            else:
                self.dropped.append(p)
        if self.dropped:
            logger.warning(
                "Source %r: dropping %d values (%s total) beyond the last accepted value %s",
                self.source_id, len(self.dropped), sum(p.count for p in self.dropped), last,
            )
        self.missed = []

    def run(self, points: Sequence[FrequencyPoint]) -> List[FrequencyPoint]:
        canonical = self.canonical
        index = 0
        previous: Optional[float] = None
        for p in points:
            # Skip past canonical points lower than this one
            while index < len(canonical) and canonical[index] < p.value:
                self.flush(previous, canonical[index])
                previous = canonical[index]
                index += 1
            if index < len(canonical) and canonical[index] == p.value:
                self.flush(previous, canonical[index])
                self._add(p.value, p.count)
            else:
                self.missed.append(p)

        if self.missed:
            if index < len(canonical):
                self.flush(previous, canonical[index])
            else:
                self.flush_tail(canonical[-1])

        return [FrequencyPoint(value=v, count=c) for v, c in sorted(self.bins.items())]


def regroup_noise_values(
    frequencies_by_source: Mapping[Hashable, Sequence[FrequencyPoint]],
    canonical: Sequence[float],
) -> RegroupResult:
    """Redistribute each source's frequencies onto the canonical bins.

    Parameters
    ----------
    frequencies_by_source:
        Raw ascending frequency tables per source.
    canonical:
        Ascending canonical bin centres from
        :func:`~continuous_histogram.analysis.whitelist.aggregate_accepted_values`.

    Returns
    -------
    RegroupResult
    """
    canonical = sorted(float(v) for v in canonical)
    threshold = proximity_threshold(canonical)

    points_by_source: Dict[Hashable, List[FrequencyPoint]] = {}
    dropped: Dict[Hashable, List[FrequencyPoint]] = {}
    regrouped = 0
    for source, points in frequencies_by_source.items():
        if not canonical:
            logger.warning("No accepted values - all %d dropped on source %r", len(points), source)
            points_by_source[source] = []
            if points:
                dropped[source] = list(points)
            continue

        state = _SourceRegrouper(source, canonical, threshold)
        points_by_source[source] = state.run(points)
        if state.dropped:
            dropped[source] = state.dropped
        regrouped += state.regrouped

    logger.info("%d noise values regrouped", regrouped)
    return RegroupResult(points_by_source=points_by_source, dropped=dropped, regrouped=regrouped)
