import unittest
from datetime import timedelta

from fastapi.testclient import TestClient

from app.db import store
from app.main import app
from app.services import maintenance_service
from app.services.tracking_service import PIXEL_GIF


class TrackingApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        store.insert_email_tracking(
            user_id="user-1",
            recruiter_email="hr@acme.com",
            subject="Hello",
            tracking_id="track-1",
            gmail_message_id="m1",
        )

    def test_open_pixel_records_first_open(self):
        for _ in range(2):
            response = self.client.get("/v1/track/open", params={"id": "track-1"})
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.headers["content-type"], "image/gif")
            self.assertIn("no-cache", response.headers["cache-control"])
            self.assertEqual(response.content, PIXEL_GIF)

        row = store.get_email_tracking("track-1")
        self.assertEqual(row["status"], "opened")
        self.assertEqual(row["open_count"], 2)
        self.assertTrue(row["opened_at"])

    def test_unknown_or_missing_id_still_serves_pixel(self):
        self.assertEqual(self.client.get("/v1/track/open", params={"id": "unknown"}).status_code, 200)
        self.assertEqual(self.client.get("/v1/track/open").status_code, 200)

    def test_click_redirects_and_counts(self):
        response = self.client.get(
            "/v1/track/click",
            params={"id": "track-1", "url": "https://portfolio.example.com/jane"},
            follow_redirects=False,
        )
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.headers["location"], "https://portfolio.example.com/jane")
        row = store.get_email_tracking("track-1")
        self.assertEqual(row["status"], "clicked")
        self.assertEqual(row["click_count"], 1)

    def test_click_rejects_non_http_targets(self):
        response = self.client.get(
            "/v1/track/click",
            params={"id": "track-1", "url": "javascript:alert(1)"},
            follow_redirects=False,
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(store.get_email_tracking("track-1")["click_count"], 0)


class MaintenanceTests(unittest.TestCase):
    def test_cooldown_cleanup_notifies_and_deletes(self):
        now = store.utc_now()
        for index in range(5):
            store.upsert_cooldown("user-1", f"r{index}@acme.com", (now - timedelta(hours=index + 1)).isoformat())
        store.upsert_cooldown("user-2", "stale@beta.com", (now - timedelta(days=10)).isoformat())
        store.upsert_cooldown("user-2", "active@beta.com", (now + timedelta(days=3)).isoformat())

        counts = maintenance_service.cleanup_cooldowns()

        self.assertEqual(counts, {"expired_cooldowns": 5, "notifications_sent": 1, "deleted_cooldowns": 1})
        notifications = store.list_notifications("user-1")
        self.assertEqual(len(notifications), 1)
        self.assertEqual(notifications[0]["type"], "cooldown_expired")
        self.assertIn("and 2 more", notifications[0]["message"])
        self.assertEqual(notifications[0]["metadata"]["count"], 5)
        self.assertEqual(store.list_notifications("user-2"), [])
        self.assertEqual(len(store.list_active_cooldowns("user-2", now.isoformat())), 1)

    def test_repeated_cleanup_runs_notify_once(self):
        now = store.utc_now()
        store.upsert_cooldown("user-1", "hr@acme.com", (now - timedelta(hours=1)).isoformat())

        first = maintenance_service.cleanup_cooldowns()
        second = maintenance_service.cleanup_cooldowns()

        self.assertEqual(first["notifications_sent"], 1)
        self.assertEqual(second, {"expired_cooldowns": 0, "notifications_sent": 0, "deleted_cooldowns": 0})
        self.assertEqual(len(store.list_notifications("user-1")), 1)

    def test_reblocked_cooldown_is_announced_again(self):
        now = store.utc_now()
        store.upsert_cooldown("user-1", "hr@acme.com", (now - timedelta(hours=2)).isoformat())
        maintenance_service.cleanup_cooldowns()

        store.upsert_cooldown("user-1", "hr@acme.com", (now - timedelta(hours=1)).isoformat())
        self.assertEqual(maintenance_service.cleanup_cooldowns()["notifications_sent"], 1)
        self.assertEqual(len(store.list_notifications("user-1")), 2)

    def test_expired_subscriptions_are_downgraded(self):
        expired = store.create_profile(email="expired@example.com", subscription_tier="PRO")
        current = store.create_profile(email="current@example.com", subscription_tier="PRO_MAX")
        now = store.utc_now()
        store.update_profile(expired["id"], subscription_expires_at=(now - timedelta(days=1)).isoformat())
        store.update_profile(current["id"], subscription_expires_at=(now + timedelta(days=5)).isoformat())

        self.assertEqual(maintenance_service.check_subscription_expiry(), {"expired_subscriptions": 1})

        downgraded = store.get_profile(expired["id"])
        self.assertEqual(downgraded["subscription_tier"], "FREE")
        self.assertIsNone(downgraded["subscription_expires_at"])
        self.assertEqual(store.list_notifications(expired["id"])[0]["type"], "warning")
        self.assertEqual(store.get_profile(current["id"])["subscription_tier"], "PRO_MAX")
