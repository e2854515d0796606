from __future__ import annotations

from typing import Any

from ..models import LoginRecord, ProfileResponse, parse_login_payload
from .base import BaseClient


class AuthClient(BaseClient):
    def login(self, email: str, password: str, *, force_login: bool = False) -> LoginRecord:
        payload: dict[str, Any] = {"email": email, "password": password}
        if force_login:
            payload["forceLogin"] = True
        data = self.http.request(
            "POST", "/api/v1/user/auth/login", json_body=payload, module="auth", operation="login"
        )
        return parse_login_payload(data)

    def logout(self) -> None:
        self._request("POST", "/api/v1/user/auth/logout", json_body={}, module="auth", operation="logout")

    def profile(self, user_id: str) -> ProfileResponse:
        data = self._request("GET", f"/api/v1/user/{user_id}", module="auth", operation="profile")
        if not isinstance(data, dict):
            raise ValueError("Expected profile response to be a JSON object")
        return ProfileResponse.model_validate(data)
