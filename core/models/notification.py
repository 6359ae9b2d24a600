# =============================================================================
# core/models/notification.py - Notification and Preference Schemas
# =============================================================================

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Notification(BaseModel):
    """One bell entry, e.g. an appointment reminder or training assignment."""
    id: str
    message: str | None = None
    link: str | None = None
    kind: str | None = None
    is_read: bool = False
    created_at: str | None = None
    payload: dict[str, Any] | None = None


class NotificationList(BaseModel):
    items: list[Notification] = Field(default_factory=list)
    unread_count: int = 0


class NotificationUpdate(BaseModel):
    is_read: bool


class ReminderRequest(BaseModel):
    run_date: date | None = Field(
        default=None,
        description="Day to send reminders for; defaults to today in REMINDER_TIMEZONE"
    )


class ReminderResponse(BaseModel):
    ok: bool = True
    run_date: str
    sent: Any = None


class ThemeMode(str, Enum):
    ORBIT = "ORBIT"
    LIGHT = "LIGHT"


class ThemeRequest(BaseModel):
    orbit: bool = False


class ThemeResponse(BaseModel):
    theme: ThemeMode
