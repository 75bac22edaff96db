"""Error taxonomy shared by the store, the API client and the CLI."""
from __future__ import annotations
from typing import Optional


class BiError(Exception):
    """Base exception for all bi-admin operations.

    Raised directly for precondition failures that have no more specific type.
    """
    pass


class RequestError(BiError):
    """Non-2xx HTTP response from the platform (or a provider API).

    Attributes:
        status_code: HTTP status code
        body: Response body, verbatim
        url: Endpoint that failed
    """

    def __init__(self, status_code: int, body: str, url: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"Request failed with status code {status_code}: {body}")


class TransportError(BiError):
    """Connection, timeout or TLS failure raised by the HTTP transport."""
    pass


class SerializationError(BiError):
    """Malformed JSON on request encoding or response decoding."""
    pass


class StorageError(BiError):
    """Local database connectivity or query failure."""
    pass


class InvalidUrlError(BiError):
    """Composed endpoint is not a well-formed URL."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid URL: {url} ({reason})")


class InvalidFilterError(BiError):
    """List filter expression could not be parsed."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        super().__init__(f"Invalid filter: {reason}: {expression!r}")


class ScopeNotSetError(BiError):
    """No tenant/realm pair was given and no default is configured."""
    pass
