"""Error taxonomy shared by engines, clients and the HTTP surface.

Every error carries the HTTP status the API layer answers with, so routes
never have to map exception types by hand.
"""

from __future__ import annotations


class ReaderError(Exception):
    """Base class for all expected ZoteroReader failures."""

    status: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ReaderError):
    """Missing or malformed request fields."""

    status = 400


class NotFound(ReaderError):
    """Referenced record does not exist."""

    status = 404


class ProviderNotFound(NotFound):
    """No provider is registered under the requested id."""


class ProviderMisconfigured(ReaderError):
    """Provider exists but cannot be used as configured."""

    status = 400


class UnsupportedProviderKind(ReaderError):
    """Provider kind cannot serve the requested operation."""

    status = 400


class NotConfigured(ReaderError):
    """Required account settings have not been provided."""

    status = 400


class IntegrityError(ReaderError):
    """A stored secret failed authentication or is malformed."""

    status = 400


class RateLimited(ReaderError):
    """Upstream answered HTTP 429."""

    status = 429

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamError(ReaderError):
    """Upstream API failed: non-2xx status or network error.

    Attributes:
        upstream_status: HTTP status from upstream, or None for network errors.
        body: Upstream response body truncated for diagnostics.
    """

    status = 502

    def __init__(self, message: str, upstream_status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body


class EmptyResult(ReaderError):
    """Provider answered successfully but returned no usable content."""

    status = 502


# Upstream bodies attached to errors are cut to this many characters.
BODY_SNIPPET_CHARS = 200


def snippet(text: str | None, limit: int = BODY_SNIPPET_CHARS) -> str:
    """Return the first ``limit`` characters of an upstream body."""
    return (text or "")[:limit]
