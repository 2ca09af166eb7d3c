from __future__ import annotations

"""Quantization-noise classification per data source.

Sensors report at a fixed precision ("rounded to the nearest <x>") but are
not always accurately represented, and different sources may round to
different unit boundaries: mixing inches and centimetres you might get 1, 2,
2.54, 3, 4, 5, 5.08, 6. Values that are far rarer than both the previous
accepted value and the values that follow are treated as noise.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Hashable, List, Mapping, Sequence, Tuple

import numpy as np

from continuous_histogram.errors import InternalConsistencyError
from continuous_histogram.models.field import FieldInfo
from continuous_histogram.models.points import FrequencyPoint

logger = logging.getLogger(__name__)

# A value is noise below 1/NOISE_FACTOR (20%) of its reference frequencies.
NOISE_FACTOR = 5
# How many following values make up the forward reference.
LOOKAHEAD = 10


class LinearFrequencyScaler:
    """Frequencies compared as they are."""

    def scale(self, count: float) -> float:
        return float(count)


class LogFrequencyScaler:
    """Frequencies compared on a log scale.

    0 may legitimately appear in the middle of exponential frequency sets, so
    this uses ``log(count + 1)``.
    """

    def scale(self, count: float) -> float:
        return float(np.log(count + 1.0))


def frequency_scaler_for(field: FieldInfo):
    """Scaler matching the field's expected frequency distribution."""
    if field.expects_exponential_frequency:
        return LogFrequencyScaler()
    return LinearFrequencyScaler()


@dataclass(frozen=True)
class DroppedValue:
    """Diagnostic record of one rejected value."""

    source_id: Hashable
    previous: FrequencyPoint
    dropped: FrequencyPoint


def looks_like_noise(scaled: float, previous_scaled: float, following_scaled: Sequence[float]) -> bool:
    """True if a scaled frequency is < 20% of both references.

    The references are the previous accepted value and the mean of up to the
    next ``LOOKAHEAD`` values. With nothing following, the value is accepted.
    """
    if NOISE_FACTOR * scaled >= previous_scaled:
        return False
    window = following_scaled[:LOOKAHEAD]
    if len(window) == 0:
        return False
    return NOISE_FACTOR * scaled < float(np.mean(window))


def classify_source(
    points: Sequence[FrequencyPoint],
    scaler,
    *,
    source_id: Hashable = None,
) -> Tuple[Tuple[float, ...], List[DroppedValue]]:
    """Accepted values for one source, plus the rejected ones.

    Sources with two or fewer distinct values pass through unfiltered: there
    is not enough to detect a pattern.
    """
    if len(points) <= 2:
        return tuple(p.value for p in points), []

    scaled = [scaler.scale(p.count) for p in points]

    # The first value seen is presumed to be non-noise.
    accepted = [points[0].value]
    previous = 0
    dropped: List[DroppedValue] = []
    for i in range(1, len(points)):
        if looks_like_noise(scaled[i], scaled[previous], scaled[i + 1:]):
            dropped.append(DroppedValue(source_id=source_id, previous=points[previous], dropped=points[i]))
            continue
        previous = i
        accepted.append(points[i].value)

    if len(accepted) < 2:
        raise InternalConsistencyError(
            f"Noise reduction produced {len(accepted)} values from {len(points)} on source {source_id!r}"
        )
    return tuple(accepted), dropped


def classify_accepted_values(
    frequencies_by_source: Mapping[Hashable, Sequence[FrequencyPoint]],
    field: FieldInfo,
) -> Dict[Hashable, Tuple[float, ...]]:
    """Which values look real (not quantization noise) on each source.

    Parameters
    ----------
    frequencies_by_source:
        Ascending frequency tables, one per source.
    field:
        Field metadata; ``expects_exponential_frequency`` selects the scale
        counts are compared on.

    Returns
    -------
    dict
        Ascending accepted values per source.
    """
    scaler = frequency_scaler_for(field)
    accepted_by_source: Dict[Hashable, Tuple[float, ...]] = {}
    dropped: List[DroppedValue] = []
    for source, points in frequencies_by_source.items():
        accepted, source_dropped = classify_source(points, scaler, source_id=source)
        accepted_by_source[source] = accepted
        dropped.extend(source_dropped)

    for d in dropped:
        logger.debug(
            "Source %r: value %s (%sx) dropped as noise after %s (%sx)",
            d.source_id, d.dropped.value, d.dropped.count, d.previous.value, d.previous.count,
        )
    return accepted_by_source
