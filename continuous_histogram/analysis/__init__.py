"""Density-estimation and noise-reduction engine.

Design principle:
  - Ingest produces :class:`~continuous_histogram.models.points.Observation` sequences.
  - Analysis consumes them and produces the combined deltas and the density curve.

Every stage returns fresh immutable sequences; nothing here keeps state between
computations except the single memoized result of :class:`ContinuousHistogram`.
"""

from .deltas import build_delta_info, build_delta_info_by_source, estimate_min_resolution
from .frequencies import filled_frequencies, ordered_frequencies
from .histogram import ContinuousHistogram, HistogramResult
from .merge import (
    BoundaryEstimator,
    DeltaMerger,
    PlainBoundaryEstimator,
    WhitelistBoundaryEstimator,
    cumulative_deltas,
)
from .noise import classify_accepted_values
from .regroup import RegroupResult, regroup_noise_values
from .whitelist import aggregate_accepted_values, median_gap

__all__ = [
    "ordered_frequencies",
    "filled_frequencies",
    "estimate_min_resolution",
    "build_delta_info",
    "build_delta_info_by_source",
    "BoundaryEstimator",
    "PlainBoundaryEstimator",
    "WhitelistBoundaryEstimator",
    "DeltaMerger",
    "cumulative_deltas",
    "classify_accepted_values",
    "aggregate_accepted_values",
    "median_gap",
    "RegroupResult",
    "regroup_noise_values",
    "ContinuousHistogram",
    "HistogramResult",
]
