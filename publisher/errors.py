"""Exception hierarchy for the publish pipeline.

Every stage raises one of these; entry points translate them into exit
codes or HTTP responses. Only FetchError is retried.
"""

from __future__ import annotations


class PublisherError(Exception):
    """Base class for all pipeline failures."""


class ConfigError(PublisherError):
    """Required configuration is missing or invalid."""


class FetchError(PublisherError):
    """Upstream API could not be reached or returned an unusable response."""


class ValidationError(PublisherError):
    """Upstream payload is malformed or incomplete."""

    def __init__(self, message: str, missing_fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing_fields = missing_fields or []


class DateMismatchError(PublisherError):
    """Upstream date differs from the expected date (content not ready yet)."""

    def __init__(self, actual: str, expected: str) -> None:
        super().__init__(
            f"Upstream date ({actual}) does not match expected date ({expected})"
        )
        self.actual = actual
        self.expected = expected


class RenderError(PublisherError):
    """Image rendering timed out or the template reported a failure."""


class WriteError(PublisherError):
    """Hosting API read or write failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StaleRevisionError(WriteError):
    """Write was rejected because the revision marker is out of date."""


class PipelineBusyError(PublisherError):
    """A publish run is already in progress in this process."""
