"""Exception hierarchy for the bill routing pipeline."""

from __future__ import annotations


class BillRouterError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(BillRouterError):
    """A required setting (API key, endpoint) is missing."""


class ExtractionError(BillRouterError):
    """The vision model returned no usable structured result.

    Fatal for the request: nothing is classified or routed.
    """

    def __init__(self, message: str, status: int | None = None, details: str | None = None):
        super().__init__(message)
        self.status = status
        self.details = details


class FileFetchError(BillRouterError):
    """The original uploaded file could not be downloaded."""


class RetryValidationError(BillRouterError):
    """A retry request is missing data needed to rebuild the call."""
