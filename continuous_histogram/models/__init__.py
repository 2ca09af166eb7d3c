from .field import FieldInfo
from .points import (
    CombinedDelta,
    CumulativeDensityPoint,
    DeltaInfo,
    FrequencyPoint,
    Observation,
    SpanDelta,
    SpikePoint,
)
from .profile import HistogramProfile

__all__ = [
    "FieldInfo",
    "HistogramProfile",
    "Observation",
    "FrequencyPoint",
    "SpanDelta",
    "SpikePoint",
    "DeltaInfo",
    "CombinedDelta",
    "CumulativeDensityPoint",
]
