import base64
import email
import unittest
from unittest.mock import MagicMock, patch

import httpx

from app.integrations import gmail


class GmailIntegrationTests(unittest.TestCase):
    def test_build_message_is_base64url_html(self):
        raw = gmail.build_message(sender="me@example.com", to="hr@acme.com", subject="Hello", html_body="<p>Hi</p>")
        message = email.message_from_bytes(base64.urlsafe_b64decode(raw))
        self.assertEqual(message["To"], "hr@acme.com")
        self.assertEqual(message["Subject"], "Hello")
        html_parts = [part for part in message.walk() if part.get_content_type() == "text/html"]
        self.assertEqual(len(html_parts), 1)
        self.assertIn("<p>Hi</p>", html_parts[0].get_payload(decode=True).decode("utf-8"))

    def test_exchange_code_posts_form_to_token_endpoint(self):
        request = httpx.Request("POST", "https://oauth2.googleapis.com/token")
        response = httpx.Response(200, json={"refresh_token": "rt", "access_token": "at"}, request=request)
        with patch("app.integrations.gmail.httpx.post", return_value=response) as mocked:
            tokens = gmail.exchange_code("code-1", "https://app.example.test/cb")

        self.assertEqual(tokens["refresh_token"], "rt")
        data = mocked.call_args.kwargs["data"]
        self.assertEqual(data["grant_type"], "authorization_code")
        self.assertEqual(data["code"], "code-1")
        self.assertEqual(data["redirect_uri"], "https://app.example.test/cb")

    def test_exchange_code_failure_raises(self):
        request = httpx.Request("POST", "https://oauth2.googleapis.com/token")
        response = httpx.Response(400, json={"error": "invalid_grant"}, request=request)
        with patch("app.integrations.gmail.httpx.post", return_value=response):
            with self.assertRaises(gmail.GmailError):
                gmail.exchange_code("bad", "https://app.example.test/cb")

    def test_send_message_returns_gmail_id(self):
        service = MagicMock()
        service.users.return_value.messages.return_value.send.return_value.execute.return_value = {"id": "msg-42"}
        with patch("app.integrations.gmail._service", return_value=service):
            message_id = gmail.send_message(
                refresh_token="rt",
                sender="me@example.com",
                to="hr@acme.com",
                subject="Hello",
                html_body="<p>Hi</p>",
            )
        self.assertEqual(message_id, "msg-42")
        body = service.users.return_value.messages.return_value.send.call_args.kwargs["body"]
        self.assertIn("raw", body)

    def test_header_line_breaks_raise_gmail_error(self):
        with patch("app.integrations.gmail._service") as service:
            with self.assertRaises(gmail.GmailError):
                gmail.send_message(
                    refresh_token="rt",
                    sender="me@example.com",
                    to="hr@acme.com",
                    subject="Hello\nBcc: x@evil.com",
                    html_body="<p>Hi</p>",
                )
        service.assert_not_called()
