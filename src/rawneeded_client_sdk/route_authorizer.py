from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .access_control import HOME, CapabilitySet, section_of

LANDING = "/"
PUBLIC_AUTH_SCREENS = frozenset({"/", "/login", "/register", "/forgot-password"})
_SIGN_IN_SCREENS = PUBLIC_AUTH_SCREENS - {LANDING}


class RouteOutcome(str, Enum):
    ALLOW = "ALLOW"
    REDIRECT = "REDIRECT"
    DENY = "DENY"


class RedirectReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    ALREADY_SIGNED_IN = "already_signed_in"
    SUBSCRIPTION_REQUIRED = "subscription_required"
    INSUFFICIENT_PERMISSION = "insufficient_permission"
    NOT_IN_ROLE = "not_in_role"


@dataclass(frozen=True)
class RouteDecision:
    outcome: RouteOutcome
    to: str | None = None
    reason: RedirectReason | None = None

    @property
    def allowed(self) -> bool:
        return self.outcome is RouteOutcome.ALLOW


ALLOW = RouteDecision(RouteOutcome.ALLOW)
DENY = RouteDecision(RouteOutcome.DENY)


def _redirect(to: str, reason: RedirectReason) -> RouteDecision:
    return RouteDecision(RouteOutcome.REDIRECT, to=to, reason=reason)


def authorize(capabilities: CapabilitySet, requested_path: str) -> RouteDecision:
    """Decide what the navigation layer does with ``requested_path``.

    Never raises. Every REDIRECT target is reachable for the same capability
    set, so authorizing the target again yields ALLOW.
    """
    section = section_of(requested_path)

    if not capabilities.is_authenticated:
        if section in PUBLIC_AUTH_SCREENS:
            return ALLOW
        return _redirect(LANDING, RedirectReason.UNAUTHENTICATED)

    if section in _SIGN_IN_SCREENS:
        return _fallback(capabilities, RedirectReason.ALREADY_SIGNED_IN)

    if section in capabilities.reachable:
        return ALLOW

    if capabilities.is_restricted_to_subscription_flow:
        reason = RedirectReason.SUBSCRIPTION_REQUIRED
    elif section in capabilities.visible:
        reason = RedirectReason.INSUFFICIENT_PERMISSION
    else:
        reason = RedirectReason.NOT_IN_ROLE
    return _fallback(capabilities, reason)


def _fallback(capabilities: CapabilitySet, reason: RedirectReason) -> RouteDecision:
    if capabilities.default_route in capabilities.reachable:
        return _redirect(capabilities.default_route, reason)
    if HOME in capabilities.reachable:
        return _redirect(HOME, reason)
    return DENY
