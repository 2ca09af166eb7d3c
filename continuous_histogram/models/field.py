from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from continuous_histogram.errors import ValidationError


@dataclass(frozen=True)
class FieldInfo:
    """Metadata capsule for the field being histogrammed.

    Attributes
    ----------
    name:
        Field (column) name used to pull observations from the source.
    exponential_values:
        The values themselves are naturally exponential (eg. raw amplitudes).
        Not used by the density computation; it is passed through to the
        result metadata for the rendering layer to pick its value axis.
    expects_exponential_frequency:
        Value frequencies fall off exponentially, so noise classification
        compares counts on a log scale.
    minimum, maximum:
        Optional hard bounds. Extrapolated boundaries never leave them.
    expected_min_resolution:
        Known quantization step, if any. When None it is estimated from data.
    """

    name: str
    exponential_values: bool = False
    expects_exponential_frequency: bool = False
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    expected_min_resolution: Optional[float] = None

    def __post_init__(self) -> None:
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            raise ValidationError(
                f"Field {self.name!r}: minimum {self.minimum} exceeds maximum {self.maximum}"
            )
        if self.expected_min_resolution is not None and not self.expected_min_resolution > 0:
            raise ValidationError(
                f"Field {self.name!r}: expected_min_resolution must be > 0, "
                f"got {self.expected_min_resolution}"
            )

    @property
    def bounds(self) -> Dict[str, float]:
        """Only the bounds that are actually set."""
        out: Dict[str, float] = {}
        if self.minimum is not None:
            out["minimum"] = float(self.minimum)
        if self.maximum is not None:
            out["maximum"] = float(self.maximum)
        return out

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> FieldInfo:
        d = dict(d)
        bounds = d.pop("bounds", None) or {}
        d.setdefault("minimum", bounds.get("minimum"))
        d.setdefault("maximum", bounds.get("maximum"))
        return cls(**d)
