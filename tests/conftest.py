from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
SDK_SRC = BASE_DIR / "src"

if str(SDK_SRC) not in sys.path:
    sys.path.insert(0, str(SDK_SRC))

from rawneeded_client_sdk.auth_store import AuthStore, PreferenceStore  # noqa: E402
from rawneeded_client_sdk.config import ClientConfig  # noqa: E402
from rawneeded_client_sdk.session import SessionStore  # noqa: E402

API = "https://api.example.com"


def future(days: int = 30) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def past(days: int = 1) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


def login_payload(
    role: str = "CUSTOMER_OWNER",
    *,
    user_id: str = "u-1",
    allowed_screens: list[str] | None = None,
    subscription: dict[str, Any] | None = None,
) -> dict[str, Any]:
    info: dict[str, Any] = {"id": user_id, "name": "Nora", "email": "nora@example.com", "role": role}
    if allowed_screens is not None:
        info["allowedScreens"] = allowed_screens
    if subscription is not None:
        info["subscription"] = subscription
    return {"token": "token-abc", "role": role, "userInfo": info}


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(env_name="test", api_base_url=API, retries=2, retry_backoff_seconds=0)


@pytest.fixture
def session_factory(config: ClientConfig, tmp_path: Path):
    def build(**kwargs: Any) -> SessionStore:
        return SessionStore(
            config=config,
            auth_store=AuthStore(base_dir=tmp_path),
            preference_store=PreferenceStore(base_dir=tmp_path),
            **kwargs,
        )

    return build


@pytest.fixture
def customer_session(session_factory) -> SessionStore:
    session = session_factory()
    session.establish(login_payload(subscription={"status": "APPROVED", "expiryDate": future()}))
    return session
