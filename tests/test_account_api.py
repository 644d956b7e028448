import unittest
from datetime import timedelta

from fastapi.testclient import TestClient

from app.db import store
from app.main import app

ADMIN = {"X-API-Key": "test-admin-key"}


def _auth(profile):
    return {"Authorization": f"Bearer {profile['access_token']}"}


class ProfileApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def test_me_reports_email_limit(self):
        profile = store.create_profile(email="me@example.com", name="Jane", subscription_tier="PRO")
        store.update_profile(profile["id"], daily_emails_sent=3, last_sent_date=store.utc_now().date().isoformat())

        response = self.client.get("/v1/me", headers=_auth(profile))
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["subscription_tier"], "PRO")
        self.assertFalse(body["gmail_connected"])
        self.assertEqual(body["email_limit"], {"daily_limit": 50, "daily_sent": 3, "remaining": 47})
        self.assertNotIn("access_token", body)
        self.assertNotIn("google_refresh_token", body)

    def test_plan_row_overrides_daily_limit(self):
        store.create_plan(name="PRO", price=499, daily_email_limit=80)
        profile = store.create_profile(email="plan@example.com", subscription_tier="PRO")
        body = self.client.get("/v1/me", headers=_auth(profile)).json()
        self.assertEqual(body["email_limit"]["daily_limit"], 80)


class ApplicationsApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        self.profile = store.create_profile(email="apps@example.com")
        self.other = store.create_profile(email="other@example.com")

    def test_application_lifecycle(self):
        created = self.client.post(
            "/v1/applications",
            json={"company": "Acme", "position": "Backend Engineer", "applied_date": "2024-05-01"},
            headers=_auth(self.profile),
        )
        self.assertEqual(created.status_code, 201)
        application = created.json()
        self.assertEqual(application["status"], "applied")
        self.assertEqual(application["applied_date"], "2024-05-01")

        updated = self.client.patch(
            f"/v1/applications/{application['id']}",
            json={"status": "interviewing", "notes": "Phone screen on Friday"},
            headers=_auth(self.profile),
        )
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.json()["status"], "interviewing")
        self.assertEqual(updated.json()["company"], "Acme")

        listed = self.client.get("/v1/applications", params={"status": "interviewing"}, headers=_auth(self.profile))
        self.assertEqual([item["id"] for item in listed.json()], [application["id"]])
        self.assertEqual(self.client.get("/v1/applications", headers=_auth(self.other)).json(), [])

        self.assertEqual(
            self.client.delete(f"/v1/applications/{application['id']}", headers=_auth(self.other)).status_code,
            404,
        )
        self.assertEqual(
            self.client.delete(f"/v1/applications/{application['id']}", headers=_auth(self.profile)).status_code,
            204,
        )

    def test_invalid_status_is_rejected(self):
        response = self.client.post(
            "/v1/applications",
            json={"company": "Acme", "position": "Engineer", "status": "ghosted"},
            headers=_auth(self.profile),
        )
        self.assertEqual(response.status_code, 422)

    def test_email_templates_and_notifications(self):
        created = self.client.post(
            "/v1/email-templates",
            json={"name": "Intro", "subject": "Hi {{recruiter_name}}", "body": "Hello from {{user_name}}"},
            headers=_auth(self.profile),
        )
        self.assertEqual(created.status_code, 201)
        templates = self.client.get("/v1/email-templates", headers=_auth(self.profile)).json()
        self.assertEqual([t["name"] for t in templates], ["Intro"])
        self.assertEqual(
            self.client.delete(f"/v1/email-templates/{created.json()['id']}", headers=_auth(self.profile)).status_code,
            204,
        )

        store.create_notification(user_id=self.profile["id"], title="Hi", message="Welcome", type="info")
        notification = self.client.get("/v1/notifications", headers=_auth(self.profile)).json()[0]
        self.assertFalse(notification["is_read"])
        response = self.client.post(f"/v1/notifications/{notification['id']}/read", headers=_auth(self.profile))
        self.assertEqual(response.status_code, 204)
        unread = self.client.get("/v1/notifications", params={"unread_only": "true"}, headers=_auth(self.profile)).json()
        self.assertEqual(unread, [])


class DirectoryApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        response = self.client.post(
            "/v1/admin/recruiters/import",
            json={
                "recruiters": [
                    {"name": "Ann Lee", "email": "Ann@Acme.com", "company": "Acme", "domain": "Engineering", "tier": "FREE"},
                    {"name": "Bob Ray", "email": "bob@beta.com", "company": "Beta", "domain": "Design", "tier": "pro"},
                    {"name": "Cat Poe", "email": "cat@gamma.com", "company": "Gamma", "domain": "Engineering", "tier": "PRO_MAX"},
                ]
            },
            headers=ADMIN,
        )
        self.assertEqual(response.json(), {"created": 3, "updated": 0})
        self.profile = store.create_profile(email="seeker@example.com", subscription_tier="PRO")

    def test_import_upserts_by_email(self):
        response = self.client.post(
            "/v1/admin/recruiters/import",
            json={"recruiters": [{"name": "Ann Lee-Smith", "email": "ann@acme.com", "tier": "FREE"}]},
            headers=ADMIN,
        )
        self.assertEqual(response.json(), {"created": 0, "updated": 1})

    def test_admin_routes_require_key(self):
        response = self.client.post(
            "/v1/admin/recruiters/import",
            json={"recruiters": [{"name": "Dan", "email": "dan@delta.com"}]},
            headers={"X-API-Key": "bad"},
        )
        self.assertEqual(response.status_code, 401)

    def test_tier_gating_and_filters(self):
        names = [r["name"] for r in self.client.get("/v1/recruiters", headers=_auth(self.profile)).json()]
        self.assertEqual(names, ["Ann Lee", "Bob Ray"])

        locked = self.client.get("/v1/recruiters", params={"tier": "PRO_MAX"}, headers=_auth(self.profile)).json()
        self.assertEqual([(r["name"], r["locked"]) for r in locked], [("Cat Poe", True)])

        search = self.client.get("/v1/recruiters", params={"search": "BETA"}, headers=_auth(self.profile)).json()
        self.assertEqual([r["name"] for r in search], ["Bob Ray"])

        domain = self.client.get("/v1/recruiters", params={"domain": "Engineering"}, headers=_auth(self.profile)).json()
        self.assertEqual([r["name"] for r in domain], ["Ann Lee"])

        domains = self.client.get("/v1/recruiters/domains", headers=_auth(self.profile)).json()
        self.assertEqual(domains, ["Design", "Engineering"])

    def test_rows_carry_active_cooldown(self):
        now = store.utc_now()
        store.upsert_cooldown(self.profile["id"], "ANN@acme.com", (now + timedelta(days=2, hours=1)).isoformat())
        rows = {r["email"]: r for r in self.client.get("/v1/recruiters", headers=_auth(self.profile)).json()}
        self.assertEqual(rows["ann@acme.com"]["cooldown"]["days_remaining"], 3)
        self.assertIsNone(rows["bob@beta.com"]["cooldown"])

    def test_maintenance_endpoints(self):
        response = self.client.post("/v1/admin/maintenance/cooldowns", headers=ADMIN)
        self.assertEqual(response.status_code, 200)
        self.assertIn("deleted_cooldowns", response.json())
        response = self.client.post("/v1/admin/maintenance/subscriptions", headers=ADMIN)
        self.assertEqual(response.json(), {"expired_subscriptions": 0})
