"""Exception hierarchy for octx.

Everything raised on purpose by the package derives from ``OctxError`` so the
CLI can report it and exit non-zero. Only ``RecordError`` subclasses are
candidates for per-row recovery; the rest always abort the export.
"""

from __future__ import annotations


class OctxError(Exception):
    """Base exception for all octx errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(OctxError):
    """Raised when settings are missing or invalid."""
    pass


class EntrypointError(OctxError):
    """Raised when an entrypoint URL cannot be built (before any request is sent)."""
    pass


class APIError(OctxError):
    """Base exception for GitHub API errors."""
    pass


class APIConnectionError(APIError):
    """Raised when the API host cannot be reached."""
    pass


class APITimeoutError(APIError):
    """Raised when a request exceeds the configured timeout."""
    pass


class APIResponseError(APIError):
    """Raised on a non-2xx status or a body that is not JSON."""
    pass


class PaginationError(APIError):
    """Raised when a next link points back to a page that was already fetched."""
    pass


class RecordError(OctxError):
    """Base exception for a single item that could not be turned into rows."""
    pass


class SchemaValidationError(RecordError):
    """Raised when a resource body does not match its expected schema."""
    pass


class RecordEncodingError(RecordError):
    """Raised when a flat record cannot be built or serialized."""
    pass


class SinkError(OctxError):
    """Raised when rows cannot be written to the output stream."""
    pass
