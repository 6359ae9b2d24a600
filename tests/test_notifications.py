# =============================================================================
# tests/test_notifications.py - Notification, Reminder and Theme Tests
# =============================================================================
# Run with: pytest tests/test_notifications.py -v
# =============================================================================

from datetime import date, datetime, timezone

import pytest

from app.exceptions import DatabaseError, ForbiddenError, NotFoundError
from core.models.levels import AppLevel
from core.models.notification import ThemeMode
from core.services.notification_service import NotificationService, reminder_run_date
from core.services.theme_service import ThemeService


@pytest.fixture
def inbox(fake_db):
    """Three notifications for user u1, one for u2."""
    fake_db.notifications.extend([
        {"id": "n1", "recipient_id": "u1", "message": "Appointment at 10:00", "kind": "appointment_reminder",
         "is_read": False, "created_at": "2025-03-10T07:00:00+00:00"},
        {"id": "n2", "recipient_id": "u1", "message": "New training assigned", "kind": "training",
         "is_read": True, "created_at": "2025-03-09T07:00:00+00:00"},
        {"id": "n3", "recipient_id": "u1", "message": "Appointment at 14:00", "kind": "appointment_reminder",
         "is_read": False, "created_at": "2025-03-11T07:00:00+00:00"},
        {"id": "n4", "recipient_id": "u2", "message": "Not yours", "is_read": False,
         "created_at": "2025-03-11T08:00:00+00:00"},
    ])
    return fake_db


# =============================================================================
# Notifications
# =============================================================================

class TestNotificationService:

    def test_list_newest_first(self, inbox):
        items, unread = NotificationService.list_for("u1")

        assert [n.id for n in items] == ["n3", "n1", "n2"]
        assert unread == 2

    def test_list_limit(self, inbox):
        items, unread = NotificationService.list_for("u1", limit=1)
        assert [n.id for n in items] == ["n3"]
        assert unread == 1

    def test_mark(self, inbox):
        NotificationService.mark("u1", "n2", is_read=False)
        assert inbox.notifications[1]["is_read"] is False

    def test_mark_someone_elses(self, inbox):
        with pytest.raises(NotFoundError):
            NotificationService.mark("u1", "n4", is_read=True)
        assert inbox.notifications[3]["is_read"] is False

    def test_mark_all_read(self, inbox):
        assert NotificationService.mark_all_read("u1") == 2
        assert NotificationService.mark_all_read("u1") == 0
        assert inbox.notifications[3]["is_read"] is False

    def test_delete(self, inbox):
        NotificationService.delete("u1", "n1")
        assert [n["id"] for n in inbox.notifications] == ["n2", "n3", "n4"]

        with pytest.raises(NotFoundError):
            NotificationService.delete("u1", "n1")

    def test_list_db_error(self, fake_db):
        fake_db.failures["fetch_notifications"] = "permission denied"
        with pytest.raises(DatabaseError):
            NotificationService.list_for("u1")


# =============================================================================
# Reminders
# =============================================================================

class TestReminders:

    def test_run_date_uses_reminder_timezone(self):
        # 23:30 UTC on 9 March is already 10 March in Sydney
        now = datetime(2025, 3, 9, 23, 30, tzinfo=timezone.utc)
        assert reminder_run_date(now, "Australia/Sydney") == date(2025, 3, 10)
        assert reminder_run_date(now, "Europe/London") == date(2025, 3, 9)

    def test_run_date_across_dst(self):
        # 23:30 UTC in July is 00:30 BST
        now = datetime(2025, 7, 1, 23, 30, tzinfo=timezone.utc)
        assert reminder_run_date(now, "Europe/London") == date(2025, 7, 2)

    def test_send_reminders(self, fake_db):
        fake_db.rpc_results["send_appointment_reminders"] = 4

        run_date, sent = NotificationService.send_reminders(date(2025, 3, 10))

        assert run_date == date(2025, 3, 10)
        assert sent == 4
        assert fake_db.rpc_calls == [("send_appointment_reminders", {"p_run_date": "2025-03-10"})]

    def test_send_reminders_default_date(self, fake_db):
        run_date, _ = NotificationService.send_reminders()
        assert fake_db.rpc_calls[0][1] == {"p_run_date": run_date.isoformat()}

    def test_send_reminders_error(self, fake_db):
        fake_db.failures["call_rpc"] = "function send_appointment_reminders does not exist"
        with pytest.raises(DatabaseError):
            NotificationService.send_reminders(date(2025, 3, 10))

    def test_trigger_requires_manager(self, fake_db, make_ctx):
        with pytest.raises(ForbiddenError):
            NotificationService.trigger_reminders(make_ctx(AppLevel.STAFF))

        NotificationService.trigger_reminders(make_ctx(AppLevel.MANAGER), date(2025, 3, 10))
        assert len(fake_db.rpc_calls) == 1


# =============================================================================
# Theme
# =============================================================================

class TestThemeService:

    def test_account_preference_wins(self, fake_db):
        fake_db.preferences["u1"] = "ORBIT"
        assert ThemeService.resolve("u1", None) == ThemeMode.ORBIT
        assert ThemeService.resolve("u1", "0") == ThemeMode.ORBIT

    def test_cookie_fallback(self, fake_db):
        assert ThemeService.resolve(None, "1") == ThemeMode.ORBIT
        assert ThemeService.resolve(None, None) == ThemeMode.LIGHT
        assert ThemeService.resolve("u1", "1") == ThemeMode.ORBIT

    def test_invalid_stored_value_ignored(self, fake_db):
        fake_db.preferences["u1"] = "SEPIA"
        assert ThemeService.resolve("u1", None) == ThemeMode.LIGHT

    def test_lookup_failure_uses_cookie(self, fake_db):
        fake_db.failures["fetch_theme_mode"] = "timeout"
        assert ThemeService.resolve("u1", "1") == ThemeMode.ORBIT

    def test_save(self, fake_db):
        ThemeService.save("u1", ThemeMode.LIGHT)
        assert fake_db.preferences == {"u1": "LIGHT"}

    def test_save_failure_is_logged_only(self, fake_db):
        fake_db.failures["upsert_theme_mode"] = "permission denied"
        ThemeService.save("u1", ThemeMode.ORBIT)
