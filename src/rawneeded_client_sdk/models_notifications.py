from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import PageMeta


class Notification(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    type: Optional[str] = None
    title_en: Optional[str] = Field(default=None, alias="titleEn")
    title_ar: Optional[str] = Field(default=None, alias="titleAr")
    message_en: Optional[str] = Field(default=None, alias="messageEn")
    message_ar: Optional[str] = Field(default=None, alias="messageAr")
    read: bool = False
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class NotificationPage(PageMeta):
    content: List[Notification] = Field(default_factory=list)


def parse_unread_count(payload: Any) -> int:
    if isinstance(payload, bool):
        raise ValueError("Unread count must be a number")
    if isinstance(payload, int):
        return max(payload, 0)
    if isinstance(payload, dict) and "count" in payload:
        return parse_unread_count(payload["count"])
    raise ValueError("Expected unread count response to carry a count")
