"""
Error types for the Grakn client.

This module defines all exception types raised by the client:
- GraknClientError: Base exception
- UnsupportedValueError: Value or concept the client cannot marshal (defect)
- UnreachableError: Unknown variant reached during marshalling (defect)
- UsageError: API misuse detected before any network call
- ChannelClosedError: Transaction or session no longer usable
- IteratorInvalidError: Iterator's transaction closed before exhaustion
- ServerRejectedError: Server reported a semantic failure
- TransportError: Connection failed before a response was obtained

Invariants:
    - All errors inherit from GraknClientError
    - Defects (UnsupportedValueError and subclasses) are never retried
    - ServerRejectedError and TransportError are always distinguishable
    - The client performs no automatic retries
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class GraknClientError(Exception):
    """Base exception for all Grakn client errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "GRAKN_CLIENT_ERROR"
        self.details = details or {}


class UnsupportedValueError(GraknClientError):
    """Value cannot be marshalled to or from the wire.

    Raised when:
    - A value's runtime type is outside the supported value kinds
    - A number does not fit the requested value kind
    - A wire value or value type enum is unrecognised
    - A decoded value kind does not match the expected kind

    This is a programming defect, not a recoverable condition.
    """

    def __init__(self, message: str, value: Any = None) -> None:
        super().__init__(
            message,
            code="UNSUPPORTED_VALUE",
            details={"value": repr(value)},
        )
        self.value = value


class UnreachableError(UnsupportedValueError):
    """A concept or answer variant the client does not know about."""

    def __init__(self, message: str, value: Any = None) -> None:
        super().__init__(message, value)
        self.code = "UNREACHABLE"


class UsageError(GraknClientError):
    """Client API used incorrectly.

    Raised when:
    - commit() is called on a READ transaction
    - A remote operation is called on a Local concept
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, code="USAGE_ERROR")


class ChannelClosedError(GraknClientError):
    """Transaction or session can no longer be used.

    Raised for every call made after the transaction was closed, committed,
    or lost its connection. The failure that closed it, if any, is chained as
    ``__cause__``.
    """

    def __init__(self, message: str, channel: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="CHANNEL_CLOSED",
            details={"channel": channel},
        )
        self.channel = channel


class IteratorInvalidError(GraknClientError):
    """Iterator pulled after its owning transaction closed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="ITERATOR_INVALID")


class ServerRejectedError(GraknClientError):
    """Server reported a semantic failure.

    The server-supplied detail is kept verbatim in ``message``.

    Attributes:
        status: gRPC status name reported by the server
    """

    def __init__(self, message: str, status: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="SERVER_REJECTED",
            details={"status": status},
        )
        self.status = status


class TransportError(GraknClientError):
    """Connection-level failure before a response was obtained.

    Idempotent reads may be retried by the caller; commits must not be.
    """

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        status: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="TRANSPORT_ERROR",
            details={"address": address, "status": status},
        )
        self.address = address
        self.status = status
