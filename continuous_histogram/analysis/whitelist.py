from __future__ import annotations

"""Aggregate per-source accepted values into one canonical bin set.

The most widely used values in the data set are retained. Starting from the
most popular value and going down in popularity, a value is only added if it
keeps at least the canonical distance from every bin already chosen. The
canonical distance is the median gap of the most representative source.
"""

import bisect
import logging
from typing import Dict, Hashable, Iterable, List, Mapping, Sequence

import numpy as np

from continuous_histogram.errors import ValidationError

logger = logging.getLogger(__name__)


def value_popularity(accepted_by_source: Mapping[Hashable, Iterable[float]]) -> Dict[float, int]:
    """For each value, how many sources accepted it."""
    seen: Dict[float, int] = {}
    for values in accepted_by_source.values():
        for v in set(values):
            seen[v] = seen.get(v, 0) + 1
    return seen


def top_source(accepted_by_source: Mapping[Hashable, Iterable[float]]) -> Hashable:
    """The source whose values have the most in common with everyone else.

    Each source is scored by the summed popularity of its accepted values; the
    first of equally scored sources wins.
    """
    if not accepted_by_source:
        raise ValidationError("No sources to aggregate")
    seen = value_popularity(accepted_by_source)
    best = None
    best_score = -1
    for source, values in accepted_by_source.items():
        score = sum(seen[v] for v in set(values))
        if score > best_score:
            best, best_score = source, score
    return best


def median_gap(values: Iterable[float]) -> float:
    """Median difference between adjacent values, ie. their expected precision.

    With an even number of gaps, the two central ones are averaged. Fewer than
    two values have no gap and give 0.
    """
    ordered = np.sort(np.asarray(list(values), dtype=float))
    if ordered.size < 2:
        return 0.0
    diffs = np.diff(ordered)
    precision = float(np.median(diffs))
    in_range = int(np.count_nonzero(diffs <= precision))
    logger.debug("%d of %d gaps are within the expected range", in_range, diffs.size)
    return precision


def insertion_position(points: Sequence[float], value: float) -> int:
    """The position after which ``value`` could fit in ascending ``points``.

    Returns -1 if it belongs before the first point. A value equal to (or
    beyond) the last point reports the last index.
    """
    if not points:
        return -1
    last = len(points) - 1
    if value >= points[last]:
        return last
    return bisect.bisect_left(points, value) - 1


def aggregate_accepted_values(accepted_by_source: Mapping[Hashable, Iterable[float]]) -> List[float]:
    """Canonical ascending bin centres across all sources.

    Parameters
    ----------
    accepted_by_source:
        Output of
        :func:`~continuous_histogram.analysis.noise.classify_accepted_values`.

    Returns
    -------
    list of float
        Bin centres, pairwise at least the canonical distance apart.
    """
    accepted_by_source = {s: tuple(v) for s, v in accepted_by_source.items()}
    seen = value_popularity(accepted_by_source)
    if not seen:
        return []

    distance = median_gap(accepted_by_source[top_source(accepted_by_source)])

    # Most popular first; equally popular values in ascending order.
    candidates = sorted(seen, key=lambda v: (-seen[v], v))
    accepted = [candidates[0]]
    for point in candidates[1:]:
        position = insertion_position(accepted, point)
        if position == -1:
            if accepted[0] - point >= distance:
                accepted.insert(0, point)
        elif position == len(accepted) - 1:
            if point - accepted[-1] >= distance and point != accepted[-1]:
                accepted.append(point)
        else:
            # The one at `position` is before, and `position + 1` is after.
            before = accepted[position]
            after = accepted[position + 1]
            if after - point >= distance and point - before >= distance:
                accepted.insert(position + 1, point)

    logger.debug("Canonical distance %s gives %d accepted points", distance, len(accepted))
    return accepted
