from __future__ import annotations

import base64
import logging
from email.message import EmailMessage
from typing import Any

import httpx
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.core.config import settings

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/gmail.send"]


class GmailError(RuntimeError):
    pass


def _client_credentials() -> tuple[str, str]:
    if not settings.google_client_id or not settings.google_client_secret:
        raise GmailError("Google OAuth client is not configured")
    return settings.google_client_id, settings.google_client_secret


def exchange_code(code: str, redirect_uri: str) -> dict[str, Any]:
    client_id, client_secret = _client_credentials()
    try:
        response = httpx.post(
            settings.google_token_uri,
            data={
                "client_id": client_id,
                "client_secret": client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": redirect_uri,
            },
            timeout=15,
        )
    except httpx.HTTPError as exc:
        logger.exception("gmail_token_exchange_request_failed: %s", exc)
        raise GmailError("Failed to exchange authorization code") from exc

    if response.status_code >= 400:
        logger.error("gmail_token_exchange_rejected status=%s body=%s", response.status_code, response.text[:500])
        raise GmailError("Failed to exchange authorization code")
    return response.json()


def _service(refresh_token: str):
    client_id, client_secret = _client_credentials()
    creds = Credentials(
        token=None,
        refresh_token=refresh_token,
        token_uri=settings.google_token_uri,
        client_id=client_id,
        client_secret=client_secret,
        scopes=SCOPES,
    )
    return build("gmail", "v1", credentials=creds, cache_discovery=False)


def build_message(*, sender: str | None, to: str, subject: str, html_body: str) -> str:
    msg = EmailMessage()
    msg["To"] = to
    msg["Subject"] = subject
    if sender:
        msg["From"] = sender
    msg.set_content("This message requires an HTML-capable email client.")
    msg.add_alternative(html_body, subtype="html")
    return base64.urlsafe_b64encode(msg.as_bytes()).decode("ascii")


def send_message(*, refresh_token: str, sender: str | None, to: str, subject: str, html_body: str) -> str:
    try:
        raw = build_message(sender=sender, to=to, subject=subject, html_body=html_body)
    except ValueError as exc:
        # Header values containing CR or LF are refused by EmailMessage.
        raise GmailError(f"Invalid email headers: {exc}") from exc
    try:
        result = _service(refresh_token).users().messages().send(userId="me", body={"raw": raw}).execute()
    except HttpError as exc:
        logger.error("gmail_send_failed to=%s status=%s", to, getattr(exc.resp, "status", None))
        raise GmailError(f"Failed to send email via Gmail: {exc}") from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("gmail_send_error to=%s: %s", to, exc)
        raise GmailError(f"Failed to send email via Gmail: {exc}") from exc
    return str(result.get("id") or "")
