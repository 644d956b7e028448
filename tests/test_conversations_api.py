import unittest
from datetime import timedelta
from unittest.mock import patch

from fastapi.testclient import TestClient

from app.db import store
from app.main import app
from app.services.llm import LLMError


def _profile(email="jane@example.com", name="Jane Doe"):
    profile = store.create_profile(email=email, name=name)
    store.update_profile(profile["id"], google_refresh_token="refresh-token")
    return profile


def _auth(profile):
    return {"Authorization": f"Bearer {profile['access_token']}"}


class ConversationApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        store.upsert_recruiter(name="Ann", email="ann@acme.com", company="Acme", tier="FREE")
        self.profile = _profile()

    def _send(self, to="Ann@Acme.com", subject="Backend roles"):
        with patch("app.integrations.gmail.send_message", return_value="gmail-msg-1"):
            response = self.client.post(
                "/v1/emails/send",
                json={"to": to, "subject": subject, "body": "Hi Ann,\nI would love to chat."},
                headers=_auth(self.profile),
            )
        self.assertEqual(response.status_code, 200)
        return response.json()

    def test_sending_opens_a_thread_with_the_recruiter(self):
        sent = self._send()

        threads = self.client.get("/v1/conversations", headers=_auth(self.profile)).json()
        self.assertEqual(len(threads), 1)
        thread = threads[0]
        self.assertEqual(thread["recruiter_email"], "ann@acme.com")
        self.assertEqual(thread["recruiter_name"], "Ann")
        self.assertEqual(thread["company_name"], "Acme")
        self.assertEqual(thread["subject_line"], "Backend roles")
        self.assertEqual(thread["status"], "awaiting_reply")
        self.assertEqual(thread["total_messages"], 1)
        self.assertEqual(thread["user_messages_count"], 1)

        detail = self.client.get(f"/v1/conversations/{thread['id']}", headers=_auth(self.profile)).json()
        self.assertEqual(len(detail["messages"]), 1)
        message = detail["messages"][0]
        self.assertEqual(message["sender_type"], "user")
        self.assertEqual(message["message_number"], 1)
        self.assertEqual(message["status"], "sent")
        self.assertEqual(message["tracking_id"], sent["tracking_id"])
        self.assertEqual(message["body_full"], "Hi Ann,\nI would love to chat.")

    def test_opens_and_clicks_reach_the_thread_message(self):
        sent = self._send()
        self.client.get("/v1/track/open", params={"id": sent["tracking_id"]})
        thread_id = store.list_threads(self.profile["id"])[0]["id"]
        message = store.list_thread_messages(thread_id)[0]
        self.assertEqual(message["status"], "opened")
        self.assertTrue(message["opened_at"])

        self.client.get(
            "/v1/track/click",
            params={"id": sent["tracking_id"], "url": "https://example.com"},
            follow_redirects=False,
        )
        message = store.list_thread_messages(thread_id)[0]
        self.assertEqual(message["status"], "clicked")
        self.assertTrue(message["clicked_at"])

    def test_logged_reply_marks_thread_replied(self):
        self._send()
        thread_id = store.list_threads(self.profile["id"])[0]["id"]

        response = self.client.post(
            f"/v1/conversations/{thread_id}/messages",
            json={"subject": "Re: Backend roles", "body": "Thanks Jane, are you free Tuesday?"},
            headers=_auth(self.profile),
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["message_number"], 2)
        self.assertEqual(response.json()["sender_type"], "recruiter")

        thread = store.get_thread(thread_id, self.profile["id"])
        self.assertEqual(thread["status"], "replied")
        self.assertEqual(thread["total_messages"], 2)
        self.assertEqual(thread["recruiter_messages_count"], 1)
        self.assertTrue(thread["last_recruiter_message_at"])

        replied = self.client.get("/v1/conversations", params={"status": "replied"}, headers=_auth(self.profile))
        self.assertEqual([t["id"] for t in replied.json()], [thread_id])
        waiting = self.client.get("/v1/conversations", params={"status": "awaiting_reply"}, headers=_auth(self.profile))
        self.assertEqual(waiting.json(), [])

    def test_status_can_be_closed_and_is_validated(self):
        self._send()
        thread_id = store.list_threads(self.profile["id"])[0]["id"]

        response = self.client.patch(
            f"/v1/conversations/{thread_id}", json={"status": "closed"}, headers=_auth(self.profile)
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "closed")

        response = self.client.patch(
            f"/v1/conversations/{thread_id}", json={"status": "ghosted"}, headers=_auth(self.profile)
        )
        self.assertEqual(response.status_code, 422)

    def test_threads_are_private_to_their_owner(self):
        self._send()
        thread_id = store.list_threads(self.profile["id"])[0]["id"]
        other = _profile(email="other@example.com", name="Other")

        self.assertEqual(self.client.get("/v1/conversations", headers=_auth(other)).json(), [])
        response = self.client.get(f"/v1/conversations/{thread_id}", headers=_auth(other))
        self.assertEqual(response.status_code, 404)
        response = self.client.patch(f"/v1/conversations/{thread_id}", json={"status": "closed"}, headers=_auth(other))
        self.assertEqual(response.status_code, 404)
        response = self.client.post(
            f"/v1/conversations/{thread_id}/messages",
            json={"subject": "Re", "body": "Hi"},
            headers=_auth(other),
        )
        self.assertEqual(response.status_code, 404)

    def test_unknown_recipient_still_gets_a_thread(self):
        self._send(to="someone@startup.io", subject="Hello")
        thread = store.list_threads(self.profile["id"])[0]
        self.assertEqual(thread["recruiter_email"], "someone@startup.io")
        self.assertIsNone(thread["recruiter_name"])


class DraftingApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        self.profile = _profile()

    def test_draft_returns_subject_and_body_from_model_json(self):
        reply = 'Here you go:\n{"subject": "Data engineer from Pune", "body": "Hi Ann, ..."}'
        with patch("app.services.conversation_service.text_completion", return_value=reply) as mocked:
            response = self.client.post(
                "/v1/emails/draft",
                json={"domain": "Data Engineering", "recruiter_name": "Ann", "company_name": "Acme"},
                headers=_auth(self.profile),
            )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"subject": "Data engineer from Pune", "body": "Hi Ann, ..."})
        prompt = mocked.call_args.kwargs["prompt"]
        self.assertIn("- Name: Jane Doe", prompt)
        self.assertIn("- Domain: Data Engineering", prompt)
        self.assertIn("- Company: Acme", prompt)
        self.assertNotIn("Target Role", prompt)

    def test_free_form_draft_becomes_the_body(self):
        with patch("app.services.conversation_service.text_completion", return_value="Dear Ann, I am writing..."):
            response = self.client.post("/v1/emails/draft", json={"domain": "Design"}, headers=_auth(self.profile))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"subject": "Interested in Design opportunities", "body": "Dear Ann, I am writing..."},
        )

    def test_draft_without_configured_model_fails(self):
        response = self.client.post("/v1/emails/draft", json={"domain": "Design"}, headers=_auth(self.profile))
        self.assertEqual(response.status_code, 500)
        self.assertIn("not configured", response.json()["detail"])

    def test_model_failure_surfaces_as_server_error(self):
        error = LLMError("upstream timeout", code="llm_exception")
        with patch("app.services.conversation_service.text_completion", side_effect=error):
            response = self.client.post("/v1/emails/draft", json={"domain": "Design"}, headers=_auth(self.profile))
        self.assertEqual(response.status_code, 500)
        self.assertIn("upstream timeout", response.json()["detail"])

    def _thread(self, days_ago):
        thread = store.get_or_create_thread(
            user_id=self.profile["id"],
            recruiter_email="ann@acme.com",
            recruiter_name="Ann",
            company_name="Acme",
            subject_line="Backend roles",
        )
        store.add_conversation_message(thread["id"], sender_type="user", subject="Backend roles", body="Hi Ann")
        stale = (store.utc_now() - timedelta(days=days_ago)).isoformat()
        with store._connect() as conn:
            conn.execute("UPDATE conversation_threads SET last_activity_at = ? WHERE id = ?", (stale, thread["id"]))
            conn.commit()
        return thread["id"]

    def test_follow_up_uses_thread_context(self):
        thread_id = self._thread(days_ago=3)
        reply = '{"subject": "Checking in", "body": "Hi Ann", "priority": "LOW", "reason": "Recent contact"}'
        with patch("app.services.conversation_service.text_completion", return_value=reply) as mocked:
            response = self.client.post(f"/v1/conversations/{thread_id}/follow-up", headers=_auth(self.profile))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["priority"], "low")
        prompt = mocked.call_args.kwargs["prompt"]
        self.assertIn("- Recipient: Ann at Acme", prompt)
        self.assertIn("- Days since last contact: 3", prompt)
        self.assertIn("- Recruiter has replied: No", prompt)

    def test_free_form_follow_up_is_prioritised_by_staleness(self):
        thread_id = self._thread(days_ago=10)
        with patch("app.services.conversation_service.text_completion", return_value="Hi Ann, just checking in."):
            response = self.client.post(f"/v1/conversations/{thread_id}/follow-up", headers=_auth(self.profile))
        self.assertEqual(
            response.json(),
            {
                "subject": "Following up: Backend roles",
                "body": "Hi Ann, just checking in.",
                "priority": "high",
                "reason": "10 days since last contact",
            },
        )

    def test_follow_up_for_unknown_thread_is_404(self):
        response = self.client.post("/v1/conversations/missing/follow-up", headers=_auth(self.profile))
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
