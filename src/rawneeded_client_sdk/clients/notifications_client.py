from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..models_notifications import NotificationPage, parse_unread_count
from .base import BaseClient, page_params


@dataclass
class NotificationsClient(BaseClient):
    def list_notifications(self, page: int = 0, size: int = 10) -> NotificationPage:
        data = self._request(
            "GET", "/api/v1/notifications/all", params=page_params(page, size), module="notifications", operation="list"
        )
        if not isinstance(data, dict):
            raise ValueError("Expected notifications response to be a JSON object")
        return NotificationPage.model_validate(data)

    def unread_count(self) -> int:
        data = self._request(
            "GET", "/api/v1/notifications/user/unread-count", module="notifications", operation="unread_count"
        )
        return parse_unread_count(data)

    def mark_read(self, notification_id: str) -> Any:
        return self._request(
            "PATCH",
            f"/api/v1/notifications/{notification_id}/mark-read",
            json_body={},
            module="notifications",
            operation="mark_read",
        )
