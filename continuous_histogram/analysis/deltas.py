from __future__ import annotations

"""Span deltas and zero-width spikes from one source's samples.

Between two consecutive samples the value is assumed to have moved linearly,
so the time between them is spread evenly over the values they span: a
trapezoid edge rising at the lower value and falling at the higher one, with
height ``elapsed / (high - low)``. If the value more or less did not move, the
elapsed time becomes a spike (zero-width point) at that value instead.

Most of the time the elapsed time between samples is 1, so span heights are
simply the inverse of the value change.
"""

import logging
import math
from typing import Dict, Hashable, Iterable, List, Optional, Sequence

import numpy as np

from continuous_histogram.errors import ValidationError
from continuous_histogram.models.points import DeltaInfo, Observation, SpanDelta, SpikePoint

logger = logging.getLogger(__name__)

# Maximum number of significant digits kept for the half-resolution.
DECIMAL_DIGITS = 10


def estimate_min_resolution(values: Iterable[Optional[float]]) -> float:
    """Smallest nonzero gap between any two distinct values.

    Absent values are ignored. With fewer than two distinct values there is no
    gap to measure, and 1 is returned.
    """
    distinct = np.unique(np.array([v for v in values if v is not None], dtype=float))
    if distinct.size < 2:
        logger.warning("Not enough distinct values for a delta calculation, will use 1")
        return 1.0
    return float(np.min(np.diff(distinct)))


def stable_half_resolution(resolution: float) -> float:
    """Half of ``resolution``, rounded to a stable decimal precision.

    Eg. a resolution of 0.1 computed as ``0.30000000000000004 - 0.2`` comes
    back as exactly 0.05.
    """
    if not resolution > 0:
        raise ValidationError(f"resolution must be > 0, got {resolution}")
    half = resolution / 2
    head_digits = math.floor(math.log10(half))
    inv_round_to = 10.0 ** (DECIMAL_DIGITS - head_digits)
    return round(half * inv_round_to) / inv_round_to


def _shortest_decimal(*candidates: float) -> float:
    # First candidate wins ties.
    return min(candidates, key=lambda v: len(repr(float(v))))


def build_delta_info(samples: Sequence[Observation], resolution: Optional[float] = None) -> DeltaInfo:
    """Convert one source's time-ordered samples into a :class:`DeltaInfo`.

    Parameters
    ----------
    samples:
        One source's observations, strictly increasing in ``time_index``.
        Absent samples are skipped.
    resolution:
        Minimum expected gap between distinct values. If omitted it is
        estimated from ``samples``.

    Returns
    -------
    DeltaInfo
        Span deltas and spikes, each sorted ascending by value.
    """
    present = [s for s in samples if s.value is not None]

    # Special case: exactly one point
    if len(present) == 1:
        only = present[0]
        width = float(resolution) if resolution is not None else 1.0
        return DeltaInfo(
            span_deltas=(),
            zero_delta_span=width,
            spike_points=(SpikePoint(value=only.value, span=width, source_id=only.source_id),),
        )

    if resolution is None:
        resolution = estimate_min_resolution(s.value for s in present)
    zero_delta_span = stable_half_resolution(resolution)

    if not present:
        return DeltaInfo(span_deltas=(), zero_delta_span=zero_delta_span, spike_points=())

    spans: List[SpanDelta] = []
    spikes: List[SpikePoint] = []

    # The first point gets injected as if there were an identical point
    # before it, using the gap to the next one as the guess.
    first, second = present[0], present[1]
    seed_width = second.time_index - first.time_index
    if not seed_width > 0:
        raise ValidationError(
            f"Samples must be strictly increasing in time_index, got {first.time_index} "
            f"then {second.time_index} on source {first.source_id!r}"
        )
    spikes.append(SpikePoint(value=first.value, span=seed_width, source_id=first.source_id))

    last = first
    for current in present[1:]:
        elapsed = current.time_index - last.time_index
        if not elapsed > 0:
            raise ValidationError(
                f"Samples must be strictly increasing in time_index, got {last.time_index} "
                f"then {current.time_index} on source {current.source_id!r}"
            )
        if abs(current.value - last.value) < zero_delta_span:
            if current.value == last.value:
                value = current.value
            else:
                value = _shortest_decimal(current.value, last.value)
            spikes.append(SpikePoint(value=value, span=elapsed, source_id=current.source_id))
        else:
            low, high = sorted((last.value, current.value))
            height = elapsed / (high - low)
            spans.append(SpanDelta(value=low, delta_weight=height))
            spans.append(SpanDelta(value=high, delta_weight=-height))
        last = current

    spans.sort(key=lambda d: d.value)
    spikes.sort(key=lambda s: s.value)
    return DeltaInfo(span_deltas=tuple(spans), zero_delta_span=zero_delta_span, spike_points=tuple(spikes))


def build_delta_info_by_source(
    observations: Iterable[Observation],
    resolution: Optional[float] = None,
) -> DeltaInfo:
    """Build one :class:`DeltaInfo` over every source.

    Each source is ordered by ``time_index`` and processed on its own, so that
    consecutive samples of different sources never form a span. Multi-sample
    sources share one resolution (``resolution`` if given, else estimated over
    all sources); single-sample sources use ``resolution`` or 1.
    """
    by_source: Dict[Hashable, List[Observation]] = {}
    for obs in observations:
        by_source.setdefault(obs.source_id, []).append(obs)

    shared = resolution
    if shared is None:
        shared = estimate_min_resolution(o.value for group in by_source.values() for o in group)

    infos = []
    for source, group in by_source.items():
        group = sorted(group, key=lambda o: o.time_index)
        n_present = sum(1 for o in group if o.value is not None)
        if n_present == 1:
            infos.append(build_delta_info(group, resolution))
        else:
            infos.append(build_delta_info(group, shared))
    return DeltaInfo.concat(infos)
