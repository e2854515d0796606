from __future__ import annotations

from dataclasses import dataclass

from .exceptions import (
    ApiError,
    ConflictingSessionError,
    NetworkOrServerError,
    PreconditionFailedError,
    UnauthenticatedError,
)
from .route_authorizer import RedirectReason, RouteDecision

SUBSCRIPTION_REQUIRED_MESSAGE = "Your subscription is required."
INSUFFICIENT_PERMISSION_MESSAGE = "Insufficient permission."
SESSION_EXPIRED_MESSAGE = "Please sign in again."
EXISTING_SESSION_MESSAGE = "This account is already signed in elsewhere. Replace that session?"
RETRY_MESSAGE = "Something went wrong. Please try again."
STALE_STATE_MESSAGE = "This item changed in the meantime. Refresh and try again."


@dataclass(frozen=True)
class UserFacingError:
    message: str
    details: str | None = None
    trace_id: str | None = None

    @property
    def technical_details(self) -> str | None:
        if self.details:
            return self.details
        return None


def to_user_facing_error(exc: ApiError) -> UserFacingError:
    details = f"{exc.code} (HTTP {exc.status_code})"
    if exc.details:
        details = f"{details}: {exc.details}"
    if isinstance(exc, UnauthenticatedError):
        primary = SESSION_EXPIRED_MESSAGE
    elif isinstance(exc, ConflictingSessionError):
        primary = EXISTING_SESSION_MESSAGE
    elif isinstance(exc, PreconditionFailedError):
        primary = STALE_STATE_MESSAGE
    elif isinstance(exc, NetworkOrServerError):
        primary = RETRY_MESSAGE
    else:
        primary = exc.message.strip() or "Request failed"
    return UserFacingError(message=primary, details=details, trace_id=exc.trace_id)


def redirect_notice(decision: RouteDecision) -> UserFacingError | None:
    """Message shown after a redirect; it never says which rule fired."""
    if decision.reason is RedirectReason.SUBSCRIPTION_REQUIRED:
        return UserFacingError(message=SUBSCRIPTION_REQUIRED_MESSAGE)
    if decision.reason in {RedirectReason.INSUFFICIENT_PERMISSION, RedirectReason.NOT_IN_ROLE}:
        return UserFacingError(message=INSUFFICIENT_PERMISSION_MESSAGE)
    return None
