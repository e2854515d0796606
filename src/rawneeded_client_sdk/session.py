from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Mapping

from .access_control import CapabilitySet, NavigationItem, navigation_items, resolve
from .auth_store import AuthStore, PreferenceStore
from .clients.auth import AuthClient
from .clients.cart_client import CartClient
from .clients.notifications_client import NotificationsClient
from .clients.orders_client import OrdersClient
from .config import ClientConfig
from .exceptions import UnauthenticatedError
from .http_client import HttpClient
from .models import Actor, LoginRecord, Preferences, SessionData, parse_login_payload
from .route_authorizer import RedirectReason, RouteDecision, RouteOutcome, authorize
from .telemetry import TelemetryLogger
from .tracing import TraceContext

logger = logging.getLogger(__name__)


@dataclass
class SessionStore:
    """Process-wide session context, constructed once and passed around.

    Only ``establish``, ``clear``, ``refresh_allowed_screens`` and
    ``update_preferences`` change it. Capabilities are recomputed on every
    call because subscription expiry depends on the clock.
    """

    config: ClientConfig
    auth_store: AuthStore | None = None
    preference_store: PreferenceStore | None = None
    trace: TraceContext | None = None
    telemetry: TelemetryLogger | None = None
    token: str | None = None
    actor: Actor | None = None
    preferences: Preferences = field(default_factory=Preferences)
    _http: HttpClient | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.auth_store = self.auth_store or AuthStore()
        self.preference_store = self.preference_store or PreferenceStore()
        self.trace = self.trace or TraceContext()
        self.telemetry = self.telemetry or TelemetryLogger(enabled=False)
        self.preferences = self.preference_store.load()
        stored = self.auth_store.load()
        if stored and not self.token:
            self.token = stored.access_token
            self.actor = stored.actor

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.actor is not None

    def require_actor(self) -> Actor:
        if self.actor is None or self.token is None:
            raise UnauthenticatedError(code="NO_SESSION", message="Sign in to continue", status_code=401)
        return self.actor

    def http(self) -> HttpClient:
        if self._http is None:
            self._http = HttpClient(config=self.config, trace=self.trace, lang_provider=lambda: self.preferences.lang)
        return self._http

    def auth_client(self) -> AuthClient:
        return AuthClient(http=self.http(), access_token=self.token)

    def cart_client(self) -> CartClient:
        return CartClient(http=self.http(), access_token=self.token)

    def orders_client(self) -> OrdersClient:
        return OrdersClient(http=self.http(), access_token=self.token)

    def notifications_client(self) -> NotificationsClient:
        return NotificationsClient(http=self.http(), access_token=self.token)

    def establish(self, record: LoginRecord | Mapping[str, Any]) -> Actor:
        login = record if isinstance(record, LoginRecord) else parse_login_payload(record)
        self.token = login.access_token
        self.actor = login.actor
        self.auth_store.save(SessionData(access_token=self.token, actor=self.actor, env_name=self.config.env_name))
        logger.info("session_established", extra={"actor_id": self.actor.id, "role": self.actor.role.value})
        return self.actor

    def clear(self) -> None:
        actor_id = self.actor.id if self.actor else None
        self.token = None
        self.actor = None
        if self.auth_store:
            self.auth_store.clear()
        if self._http is not None:
            self._http.close_scopes()
        self.trace.rotate()
        logger.info("session_cleared", extra={"actor_id": actor_id})

    def refresh_allowed_screens(self, screens: Iterable[str]) -> Actor:
        actor = self.require_actor()
        self.actor = actor.with_allowed_screens(list(screens))
        self.auth_store.save(SessionData(access_token=self.token, actor=self.actor, env_name=self.config.env_name))
        return self.actor

    def update_preferences(self, **changes: Any) -> Preferences:
        self.preferences = Preferences.model_validate({**self.preferences.model_dump(), **changes})
        self.preference_store.save(self.preferences)
        return self.preferences

    def capabilities(self, now: datetime | None = None) -> CapabilitySet:
        return resolve(self.actor, now)

    def navigation(self, now: datetime | None = None) -> List[NavigationItem]:
        return navigation_items(self.capabilities(now))

    def authorize(self, path: str, now: datetime | None = None) -> RouteDecision:
        capabilities = self.capabilities(now)
        decision = authorize(capabilities, path)
        if decision.outcome is not RouteOutcome.ALLOW and decision.reason is not RedirectReason.ALREADY_SIGNED_IN:
            self._report_denied(path, capabilities, decision)
        return decision

    def _report_denied(self, path: str, capabilities: CapabilitySet, decision: RouteDecision) -> None:
        category = "navigation" if decision.reason is RedirectReason.UNAUTHENTICATED else "permission_denied"
        self.telemetry.record(
            category=category,
            name="route_redirected",
            module="navigation",
            action=decision.outcome.value.lower(),
            trace_id=self.trace.trace_id,
            context={
                "path": path,
                "role": capabilities.role.value,
                "reason": decision.reason.value if decision.reason else None,
                "to": decision.to,
            },
        )
