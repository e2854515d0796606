from __future__ import annotations

import logging
from dataclasses import dataclass

from ..exceptions import ApiError, ConflictingSessionError
from ..models import Actor
from ..session import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class AuthService:
    session: SessionStore

    def login(self, email: str, password: str, *, replace_session: bool = False) -> Actor:
        """Sign in and establish the session.

        A ``ConflictingSessionError`` is re-raised untouched: the caller must
        confirm with the user and call again with ``replace_session=True``.
        """
        self.session.telemetry.record(category="auth", name="login_attempt", module="auth", action="submit")
        try:
            record = self.session.auth_client().login(email, password, force_login=replace_session)
        except ConflictingSessionError:
            logger.info("login_existing_session", extra={"replace_session": replace_session})
            self.session.telemetry.record(
                category="auth",
                name="login_existing_session",
                module="auth",
                action="submit",
                success=False,
                error_code="EXISTING_SESSION",
            )
            raise
        except ApiError as exc:
            self.session.telemetry.record(
                category="auth", name="login_failed", module="auth", action="submit", success=False, error_code=exc.code
            )
            raise
        actor = self.session.establish(record)
        self.session.telemetry.record(
            category="auth", name="login_success", module="auth", action="submit", success=True,
            context={"role": actor.role.value},
        )
        return actor

    def logout(self) -> None:
        if self.session.token:
            try:
                self.session.auth_client().logout()
            except ApiError as exc:
                logger.warning("remote_logout_failed", extra={"code": exc.code, "trace_id": exc.trace_id})
        self.session.clear()

    def refresh_allowed_screens(self) -> Actor:
        actor = self.session.require_actor()
        profile = self.session.auth_client().profile(actor.id)
        if profile.allowed_screens is None:
            return actor
        return self.session.refresh_allowed_screens(profile.allowed_screens)
