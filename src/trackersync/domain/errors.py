"""Error taxonomy shared by the reconciliation and classification pathways.

Every error raised below the orchestration boundary is one of these kinds;
the service and CLI convert them into structured failure responses.
"""

from __future__ import annotations


class TrackerError(RuntimeError):
    """Base class for reconciliation and classification failures."""


class AuthError(TrackerError):
    """Raised when a trigger credential is missing or does not match."""


class UpstreamError(TrackerError):
    """Raised when the extraction service is unreachable or answers with a failure."""

    def __init__(self, message: str, *, status: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class ParseError(TrackerError):
    """Raised when extraction output cannot be decoded into the expected structure."""

    def __init__(self, message: str, *, raw: str) -> None:
        super().__init__(message)
        self.raw = raw


class ValidationError(TrackerError):
    """Raised when a classification schema name is not registered."""


class StorageError(TrackerError):
    """Raised when reading or writing the canonical store fails.

    A failed write must be treated as not applied.
    """


class StaleRecordError(StorageError):
    """Raised when a patch is based on a record version that is no longer current."""

    def __init__(self, message: str, *, expected_version: int | None) -> None:
        super().__init__(message)
        self.expected_version = expected_version
