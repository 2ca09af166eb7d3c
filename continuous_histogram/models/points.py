from __future__ import annotations

"""Point types flowing through the density pipeline.

All containers are frozen: every stage builds fresh sequences instead of
mutating its input.
"""

from dataclasses import dataclass
from typing import Hashable, Iterable, Optional, Tuple

from continuous_histogram.errors import ValidationError


@dataclass(frozen=True)
class Observation:
    """One raw, externally validated sample.

    Attributes
    ----------
    value:
        Sampled value, or None when the upstream record marked it missing.
    time_index:
        Monotonic position of the sample on its source's timeline.
    source_id:
        Identifier of the data source (sensor / file) that produced it.
    """

    value: Optional[float]
    time_index: float
    source_id: Hashable = 0

    @property
    def is_absent(self) -> bool:
        return self.value is None


@dataclass(frozen=True)
class FrequencyPoint:
    """How often one distinct value occurred on a source."""

    value: float
    count: float


@dataclass(frozen=True)
class SpanDelta:
    """Rising (positive) or falling (negative) edge of the trapezoidal density."""

    value: float
    delta_weight: float


@dataclass(frozen=True)
class SpikePoint:
    """Mass concentrated at one value over a measured time span."""

    value: float
    span: float
    source_id: Hashable = 0

    def __post_init__(self) -> None:
        if not self.span > 0:
            raise ValidationError(f"Spike span must be > 0, got {self.span} at value {self.value}")


@dataclass(frozen=True)
class DeltaInfo:
    """Bundle consumed by the delta merger.

    Attributes
    ----------
    span_deltas:
        Span edges, ascending by value.
    zero_delta_span:
        Values closer than this are treated as one flat run.
    spike_points:
        Zero-width points, ascending by value.
    """

    span_deltas: Tuple[SpanDelta, ...]
    zero_delta_span: float
    spike_points: Tuple[SpikePoint, ...]

    @classmethod
    def concat(cls, infos: Iterable["DeltaInfo"]) -> "DeltaInfo":
        """Merge per-source bundles into one.

        The inputs are expected to share a resolution. The smallest positive
        ``zero_delta_span`` is kept, since single-sample sources carry the full
        resolution rather than half of it.
        """
        infos = list(infos)
        if not infos:
            return cls(span_deltas=(), zero_delta_span=0.0, spike_points=())
        spans = sorted((d for info in infos for d in info.span_deltas), key=lambda d: d.value)
        spikes = sorted((s for info in infos for s in info.spike_points), key=lambda s: s.value)
        positive = [info.zero_delta_span for info in infos if info.zero_delta_span > 0]
        return cls(
            span_deltas=tuple(spans),
            zero_delta_span=min(positive) if positive else 0.0,
            spike_points=tuple(spikes),
        )


@dataclass(frozen=True)
class CombinedDelta:
    """One entry of the merged piecewise derivative (strictly ascending)."""

    value: float
    delta_weight: float


@dataclass(frozen=True)
class CumulativeDensityPoint:
    """Running sum of combined delta weights up to ``value``."""

    value: float
    cumulative_weight: float
