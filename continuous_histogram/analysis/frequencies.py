from __future__ import annotations

"""Per-source value frequency tables.

``ordered_frequencies`` is the first stage of the pipeline: every later stage
works on ascending (value, count) tables, one per data source.
``filled_frequencies`` flattens those tables into the discrete histogram,
padding gaps with zero-count points so that the chart drops to zero between
distant values instead of interpolating across them.
"""

import logging
from typing import Dict, Hashable, Iterable, List, Mapping, Sequence

import numpy as np

from continuous_histogram.errors import ResourceLimitError, ValidationError
from continuous_histogram.models.points import FrequencyPoint, Observation
from continuous_histogram.models.profile import DEFAULT_MAX_POINTS

logger = logging.getLogger(__name__)


def ordered_frequencies(observations: Iterable[Observation]) -> Dict[Hashable, List[FrequencyPoint]]:
    """Group observations per source into ascending (value, count) tables.

    Observations with an absent value are skipped. Sources appear in the order
    they were first seen.
    """
    counts_by_source: Dict[Hashable, Dict[float, int]] = {}
    for obs in observations:
        if obs.value is None:
            continue
        counts = counts_by_source.setdefault(obs.source_id, {})
        counts[obs.value] = counts.get(obs.value, 0) + 1

    return {
        source: [FrequencyPoint(value=v, count=c) for v, c in sorted(counts.items())]
        for source, counts in counts_by_source.items()
    }


def filled_frequencies(
    frequencies_by_source: Mapping[Hashable, Sequence[FrequencyPoint]],
    resolution: float,
    *,
    max_points: int = DEFAULT_MAX_POINTS,
) -> List[FrequencyPoint]:
    """Flatten per-source tables into one discrete histogram.

    Parameters
    ----------
    frequencies_by_source:
        Ascending tables per source (raw or regrouped).
    resolution:
        Expected gap between adjacent values.
    max_points:
        Emitting this many points or more raises :class:`ResourceLimitError`.

    Returns
    -------
    list of FrequencyPoint
        Ascending, unique by value. Where two neighbours are more than one
        ``resolution`` apart, a zero-count point is inserted one step above the
        lower value and another at the last whole step below the upper value.
    """
    if not resolution > 0:
        raise ValidationError(f"resolution must be > 0, got {resolution}")

    values = np.array([p.value for pts in frequencies_by_source.values() for p in pts], dtype=float)
    counts = np.array([p.count for pts in frequencies_by_source.values() for p in pts], dtype=float)
    if values.size == 0:
        return []

    # Coalesce equal values across sources.
    unique, inverse = np.unique(values, return_inverse=True)
    summed = np.zeros(unique.size, dtype=float)
    np.add.at(summed, inverse, counts)
    logger.debug("%d ordered frequencies found", unique.size)

    tolerance = resolution * 1e-6
    out: List[FrequencyPoint] = []

    def _add(point: FrequencyPoint) -> None:
        if len(out) + 1 >= max_points:
            raise ResourceLimitError(
                f"Too many data points to use ({len(out) + 1}+)", limit=max_points
            )
        out.append(point)

    for i, (value, count) in enumerate(zip(unique.tolist(), summed.tolist())):
        _add(FrequencyPoint(value=value, count=count))
        if i + 1 >= unique.size:
            break
        next_value = float(unique[i + 1])
        # Estimated resolutions carry float drift (0.3 - 0.2 < 0.1).
        if next_value - value > resolution + tolerance:
            _add(FrequencyPoint(value=value + resolution, count=0.0))
            steps = int(np.floor((next_value - value) / resolution - 0.0001))
            if steps > 1:
                _add(FrequencyPoint(value=value + steps * resolution, count=0.0))

    logger.debug("%d frequencies emitted", len(out))
    return out
