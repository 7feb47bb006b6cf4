"""Error taxonomy for the filter engine."""

from __future__ import annotations


class FilterError(Exception):
    """Base class for filter engine errors."""


class MalformedBatch(FilterError, ValueError):
    """A listing batch buffer did not have the fixed batch size."""

    def __init__(self, actual: int, expected: int) -> None:
        super().__init__(f"Listing batch must be {expected} bytes, got {actual}")
        self.actual = actual
        self.expected = expected


class InvalidArgument(FilterError, ValueError):
    """Required input was missing or could not be used."""


class ClassifierUnavailable(FilterError):
    """The classifier cannot produce a result for this call."""
