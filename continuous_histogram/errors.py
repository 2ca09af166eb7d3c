"""Error taxonomy for the continuous histogram pipeline.

Every error aborts the current recomputation and propagates unchanged to the
caller. Nothing in the pipeline retries.
"""

from __future__ import annotations


class HistogramError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(HistogramError, ValueError):
    """Malformed input or configuration (a violated precondition)."""


class InternalConsistencyError(HistogramError, RuntimeError):
    """An algorithm invariant was broken.

    This indicates a defect in the algorithm or in the assumptions it makes
    about its input, never a recoverable condition.
    """


class ResourceLimitError(HistogramError, RuntimeError):
    """The output would exceed the hard point cap."""

    def __init__(self, message: str, *, limit: int) -> None:
        super().__init__(message)
        self.limit = int(limit)
