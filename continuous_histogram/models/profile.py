"""Histogram profile -- bundles the run configuration of one computation.

A HistogramProfile groups every run parameter that affects the density curve
into one frozen dataclass.  It can be:

- Overridden field-by-field via ``dataclasses.replace()``
- Serialized to/from a dict for JSON provenance
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from continuous_histogram.errors import ValidationError

DEFAULT_MAX_POINTS = 1_000_000


@dataclass(frozen=True)
class HistogramProfile:
    """Frozen run configuration.

    Optional fields (sensible defaults)
    ------------------------------------
    noise_reduction : bool
        If True, classify quantization noise per source, build the canonical
        bin set and use whitelist-aware spike widths.
    limit : int or None
        Only the first ``limit`` rows of the source are considered.
    max_points : int
        Hard cap on emitted points (merged deltas and filled frequencies).
    """

    noise_reduction: bool = False
    limit: Optional[int] = None
    max_points: int = DEFAULT_MAX_POINTS

    def __post_init__(self) -> None:
        if self.limit is not None and int(self.limit) < 0:
            raise ValidationError(f"limit must be >= 0 or None, got {self.limit}")
        if int(self.max_points) <= 0:
            raise ValidationError(f"max_points must be > 0, got {self.max_points}")

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> HistogramProfile:
        """Reconstruct from a dict (e.g. loaded from JSON)."""
        d = dict(d)  # shallow copy
        if d.get("limit") is not None:
            d["limit"] = int(d["limit"])
        return cls(**d)
