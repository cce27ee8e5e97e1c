# src/core/errors.py — v1
"""Error taxonomy: tagged error kinds and the exception hierarchy.

Every exception raised by acrocheck carries an ErrorKind. Retry decisions
are made from the kind alone (see check/retry.py), never from the
exception type.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of a failure, used to decide whether to retry."""

    TIMEOUT = "timeout"
    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    CONNECTION = "connection"
    IO = "io"
    AUTH = "auth"
    CLIENT_ERROR = "client_error"
    PROTOCOL = "protocol"
    FILE_ACCESS = "file_access"
    CONFIGURATION = "configuration"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"

    @property
    def is_transient(self) -> bool:
        return self in _TRANSIENT_KINDS


_TRANSIENT_KINDS = frozenset({
    ErrorKind.TIMEOUT,
    ErrorKind.RATE_LIMIT,
    ErrorKind.SERVER_ERROR,
    ErrorKind.CONNECTION,
    ErrorKind.IO,
})


class AcrocheckError(Exception):
    """Base class for all acrocheck errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        context: str | None = None,
        kind: ErrorKind | None = None,
    ) -> None:
        super().__init__(message)
        self.context = context
        if kind is not None:
            self.kind = kind

    @property
    def is_transient(self) -> bool:
        return self.kind.is_transient

    def __str__(self) -> str:
        result = f"[{self.kind.value}] {super().__str__()}"
        if self.context:
            result += f" (context: {self.context})"
        if self.is_transient:
            result += " [transient]"
        return result


class RemoteApiError(AcrocheckError):
    """A call to the remote checking service failed."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        context: str | None = None,
        endpoint: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, context=context, kind=kind)
        self.endpoint = endpoint
        self.status_code = status_code

    @classmethod
    def timeout(cls, context: str | None = None, endpoint: str | None = None) -> RemoteApiError:
        return cls(
            "API request timed out",
            kind=ErrorKind.TIMEOUT, context=context, endpoint=endpoint, status_code=408,
        )

    @classmethod
    def rate_limit(cls, context: str | None = None, endpoint: str | None = None) -> RemoteApiError:
        return cls(
            "API rate limit exceeded, reduce the number of concurrent requests",
            kind=ErrorKind.RATE_LIMIT, context=context, endpoint=endpoint, status_code=429,
        )

    @classmethod
    def server_error(
        cls,
        status_code: int = 500,
        context: str | None = None,
        endpoint: str | None = None,
    ) -> RemoteApiError:
        return cls(
            f"Server error (HTTP {status_code}), the service may be temporarily unavailable",
            kind=ErrorKind.SERVER_ERROR, context=context, endpoint=endpoint,
            status_code=status_code,
        )

    @classmethod
    def from_status(
        cls,
        status_code: int,
        detail: str = "",
        context: str | None = None,
        endpoint: str | None = None,
    ) -> RemoteApiError:
        """Build the error matching an unsuccessful HTTP status code."""
        if status_code == 408:
            return cls.timeout(context=context, endpoint=endpoint)
        if status_code == 429:
            return cls.rate_limit(context=context, endpoint=endpoint)
        if status_code >= 500:
            return cls.server_error(status_code, context=context, endpoint=endpoint)
        kind = ErrorKind.AUTH if status_code in (401, 403) else ErrorKind.CLIENT_ERROR
        message = f"HTTP {status_code}"
        if detail:
            message += f": {detail}"
        return cls(
            message, kind=kind, context=context, endpoint=endpoint, status_code=status_code,
        )


class FileAccessError(AcrocheckError):
    """A content file is missing, unreadable, or not acceptable for checking."""

    kind = ErrorKind.FILE_ACCESS


class OperationCancelled(AcrocheckError):
    """The shared cancellation event fired while an operation was waiting."""

    kind = ErrorKind.CANCELLED

    def __init__(self, operation: str = "operation", context: str | None = None) -> None:
        super().__init__(f"{operation} cancelled", context=context)
        self.operation = operation
