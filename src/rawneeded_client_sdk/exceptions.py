from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None = None
    trace_id: str | None = None
    status_code: int = 0
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"


class UnauthenticatedError(ApiError):
    """No session, or the server rejected the session token."""


class UnauthorizedError(ApiError):
    """Authenticated, but the server refused the action for this actor."""


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    pass


class PreconditionFailedError(ApiError):
    """A transition was requested from a state that does not allow it."""


class ConflictingSessionError(ApiError):
    """The server already holds an active session for this account."""


class SearchQuotaExceededError(ApiError):
    """The subscription has no product searches left."""


class RateLimitError(ApiError):
    """429 throttling error."""


class NetworkOrServerError(ApiError):
    """The collaborator was unreachable or failed on its side."""


class ServerError(NetworkOrServerError):
    """5xx server-side failures."""


class TransportError(NetworkOrServerError):
    """Network/transport failure before an HTTP response was returned."""


def precondition_failed(code: str, message: str, **details: object) -> PreconditionFailedError:
    return PreconditionFailedError(
        code=code,
        message=message,
        details=details or None,
        trace_id=None,
        status_code=0,
    )
