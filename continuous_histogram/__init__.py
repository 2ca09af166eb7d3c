"""Continuous Histogram -- time-at-value density curves from quantized sensor series.

This package turns an irregular, multi-source time series of sampled values
into a continuous estimate of how much time is spent at each value.

This package provides tools for:
- Building per-source value frequency tables
- Converting samples into span deltas and zero-width spikes
- Classifying quantization noise per source and aggregating canonical bins
- Regrouping noise mass onto the nearest canonical bins
- Merging spans and spikes into one combined derivative and its cumulative curve

Key principles:
- The curve is a documented heuristic, not a physical model
- No retries: every error aborts the computation unchanged
- One memoized result at a time, dropped whenever an input changes

Main subpackages:
- analysis: Frequencies, deltas, noise reduction, merge, histogram facade
- ingest: DataFrame-backed observation source
- models: Data models (Observation, DeltaInfo, FieldInfo, HistogramProfile)
"""

from .log import configure_logging

__all__ = ["configure_logging"]
