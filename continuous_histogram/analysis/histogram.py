from __future__ import annotations

"""Continuous histogram of one field: the full pipeline behind one chart.

Pipeline
--------
1) Ordered frequencies per source.
2) Noise reduction (optional, needs at least two distinct values):
   classify accepted values per source, aggregate them into canonical bins,
   regroup each source's noise onto those bins.
3) Span deltas and spikes per source.
4) Merge into combined deltas (whitelist-aware when noise-reduced), then the
   cumulative integral.

The result is recomputed synchronously and memoized in a single slot: changing
the field, the row filter, the limit or the noise-reduction flag drops it.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Optional, Tuple

import numpy as np
import pandas as pd

from continuous_histogram.analysis.deltas import build_delta_info_by_source, estimate_min_resolution
from continuous_histogram.analysis.frequencies import filled_frequencies, ordered_frequencies
from continuous_histogram.analysis.merge import (
    BoundaryEstimator,
    DeltaMerger,
    PlainBoundaryEstimator,
    WhitelistBoundaryEstimator,
    cumulative_deltas,
)
from continuous_histogram.analysis.noise import classify_accepted_values
from continuous_histogram.analysis.regroup import RegroupResult, regroup_noise_values
from continuous_histogram.analysis.whitelist import aggregate_accepted_values
from continuous_histogram.ingest.frames import RowFilter
from continuous_histogram.models.field import FieldInfo
from continuous_histogram.models.points import CombinedDelta, CumulativeDensityPoint, FrequencyPoint
from continuous_histogram.models.profile import HistogramProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistogramResult:
    """Everything computed for one (field, filter, limit, noise-reduction) state.

    Attributes
    ----------
    combined:
        Merged piecewise derivative, strictly ascending by value.
    cumulative:
        Running sum of ``combined``: the density curve handed to rendering.
    frequencies:
        Discrete histogram (regrouped when noise-reduced), zero-filled across gaps.
    resolution:
        Expected gap between adjacent values (configured or estimated).
    zero_delta_span:
        Flat-run threshold used by the delta builder.
    noise_reduced:
        Whether the noise-reduction stages ran.
    accepted_values, canonical_values, regroup:
        Noise-reduction intermediates (None when it did not run).
    """

    field: FieldInfo
    profile: HistogramProfile
    combined: Tuple[CombinedDelta, ...]
    cumulative: Tuple[CumulativeDensityPoint, ...]
    frequencies: Tuple[FrequencyPoint, ...]
    resolution: float
    zero_delta_span: float
    noise_reduced: bool = False
    accepted_values: Optional[Dict[Hashable, Tuple[float, ...]]] = None
    canonical_values: Optional[Tuple[float, ...]] = None
    regroup: Optional[RegroupResult] = None

    def to_frame(self) -> pd.DataFrame:
        """The density curve as a DataFrame (value, delta_weight, cumulative_weight)."""
        return pd.DataFrame(
            {
                "value": np.array([d.value for d in self.combined], dtype=float),
                "delta_weight": np.array([d.delta_weight for d in self.combined], dtype=float),
                "cumulative_weight": np.array([c.cumulative_weight for c in self.cumulative], dtype=float),
            }
        )

    def to_metadata_dict(self) -> Dict[str, Any]:
        """Export provenance as a flat dictionary (for CSV headers / JSON)."""
        d: Dict[str, Any] = {
            "field_name": self.field.name,
            "exponential_values": self.field.exponential_values,
            "noise_reduction": self.profile.noise_reduction,
            "noise_reduced": self.noise_reduced,
            "limit": self.profile.limit,
            "resolution": self.resolution,
            "zero_delta_span": self.zero_delta_span,
            "n_combined": len(self.combined),
            "n_frequencies": len(self.frequencies),
        }
        if self.canonical_values is not None:
            d["n_canonical"] = len(self.canonical_values)
        if self.regroup is not None:
            d["regrouped"] = self.regroup.regrouped
            d["dropped_mass"] = self.regroup.dropped_mass
        return d


class ContinuousHistogram:
    """Memoizing front end over an observation source.

    Parameters
    ----------
    source:
        Anything with ``get_values(field, limit, row_filter)`` returning
        observations, eg. :class:`~continuous_histogram.ingest.frames.ObservationFrame`.
    field:
        Field to histogram.
    profile:
        Run configuration; defaults to :class:`HistogramProfile()`.
    row_filter:
        Optional predicate over raw rows.
    """

    def __init__(
        self,
        source,
        field: FieldInfo,
        profile: Optional[HistogramProfile] = None,
        *,
        row_filter: Optional[RowFilter] = None,
    ) -> None:
        self._source = source
        self._field = field
        self._profile = profile if profile is not None else HistogramProfile()
        self._row_filter = row_filter
        self._result: Optional[HistogramResult] = None

    # ------------------------------------------------------------------
    # Inputs (any change invalidates the memoized result)
    # ------------------------------------------------------------------

    @property
    def field(self) -> FieldInfo:
        return self._field

    @field.setter
    def field(self, v: FieldInfo) -> None:
        self._field = v
        self._result = None

    @property
    def row_filter(self) -> Optional[RowFilter]:
        return self._row_filter

    @row_filter.setter
    def row_filter(self, v: Optional[RowFilter]) -> None:
        self._row_filter = v
        self._result = None

    @property
    def limit(self) -> Optional[int]:
        return self._profile.limit

    @limit.setter
    def limit(self, v: Optional[int]) -> None:
        self._profile = dataclasses.replace(self._profile, limit=v)
        self._result = None

    @property
    def noise_reduction(self) -> bool:
        return self._profile.noise_reduction

    @noise_reduction.setter
    def noise_reduction(self, v: bool) -> None:
        self._profile = dataclasses.replace(self._profile, noise_reduction=bool(v))
        self._result = None

    @property
    def profile(self) -> HistogramProfile:
        return self._profile

    @property
    def is_dirty(self) -> bool:
        return self._result is None

    def invalidate(self) -> None:
        self._result = None

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------

    @property
    def raw_values(self):
        """The underlying observations for the current field, limit and filter."""
        return list(self._source.get_values(self._field, self._profile.limit, self._row_filter))

    def compute(self) -> HistogramResult:
        if self._result is None:
            self._result = self._compute()
        return self._result

    def _compute(self) -> HistogramResult:
        field = self._field
        profile = self._profile
        observations = self.raw_values

        frequencies_by_source = ordered_frequencies(observations)
        resolution = field.expected_min_resolution
        if resolution is None:
            resolution = estimate_min_resolution(o.value for o in observations)

        delta_info = build_delta_info_by_source(observations, field.expected_min_resolution)

        n_distinct = len({p.value for pts in frequencies_by_source.values() for p in pts})
        accepted = None
        canonical = None
        regroup = None
        estimator: BoundaryEstimator
        if profile.noise_reduction and n_distinct >= 2:
            accepted = classify_accepted_values(frequencies_by_source, field)
            canonical = tuple(aggregate_accepted_values(accepted))
            regroup = regroup_noise_values(frequencies_by_source, canonical)
            estimator = WhitelistBoundaryEstimator(
                {s: [p.value for p in pts] for s, pts in regroup.points_by_source.items()}
            )
            display_frequencies = regroup.points_by_source
        else:
            if profile.noise_reduction:
                logger.debug("Only %d distinct values; noise reduction skipped", n_distinct)
            estimator = PlainBoundaryEstimator()
            display_frequencies = frequencies_by_source

        merger = DeltaMerger(delta_info, field.bounds, estimator, max_points=profile.max_points)
        combined = merger.combined

        return HistogramResult(
            field=field,
            profile=profile,
            combined=combined,
            cumulative=cumulative_deltas(combined),
            frequencies=tuple(filled_frequencies(display_frequencies, resolution, max_points=profile.max_points)),
            resolution=float(resolution),
            zero_delta_span=delta_info.zero_delta_span,
            noise_reduced=accepted is not None,
            accepted_values=accepted,
            canonical_values=canonical,
            regroup=regroup,
        )

    @property
    def combined(self) -> Tuple[CombinedDelta, ...]:
        """Deltas with all values of the same value combined."""
        return self.compute().combined

    @property
    def cumulative_deltas(self) -> Tuple[CumulativeDensityPoint, ...]:
        return self.compute().cumulative

    @property
    def frequencies(self) -> Tuple[FrequencyPoint, ...]:
        return self.compute().frequencies
