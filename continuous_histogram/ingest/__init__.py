"""Observation sources.

Parsing the weather-record file format happens upstream; this package only
adapts already validated tables into :class:`~continuous_histogram.models.points.Observation`
sequences.
"""

from .frames import ObservationFrame, RowFilter

__all__ = [
    "ObservationFrame",
    "RowFilter",
]
