from __future__ import annotations

import html
import logging
import re
import sqlite3
import uuid
from typing import Any

from app.core.config import settings
from app.db import store
from app.integrations import gmail
from app.services import conversation_service
from app.services.cooldowns import cooldown_info, next_blocked_until
from app.services.errors import ServiceError
from app.services.tiers import can_access_recruiter, email_limit_status

logger = logging.getLogger(__name__)

_HTML_TAG_RE = re.compile(r"<[a-zA-Z][^>]*>")
_PLACEHOLDER_RE = re.compile(r"\{\{\s*(recruiter_name|company|user_name)\s*\}\}")
_HEADER_BREAK_RE = re.compile(r"[\r\n]")


def _today() -> str:
    return store.utc_now().date().isoformat()


def _require_profile(profile_id: str) -> dict[str, Any]:
    profile = store.get_profile(profile_id)
    if not profile:
        raise ServiceError("Profile not found", status_code=404)
    return profile


def email_limit(profile: dict[str, Any]) -> dict[str, int]:
    """Today's quota; an active plan row named after the tier may raise the default limit."""
    plan = store.get_plan_by_name(profile.get("subscription_tier") or "FREE")
    return email_limit_status(profile, _today(), plan)


def interpolate(text: str, values: dict[str, str], *, escape: bool = False) -> str:
    def _replace(match: re.Match[str]) -> str:
        value = values.get(match.group(1)) or ""
        return html.escape(value) if escape else value

    return _PLACEHOLDER_RE.sub(_replace, text)


def to_html_body(body: str) -> str:
    if _HTML_TAG_RE.search(body):
        return body
    return html.escape(body).replace("\n", "<br>")


def tracking_pixel(tracking_id: str) -> str:
    src = f"{settings.public_base_url}/v1/track/open?id={tracking_id}"
    return f'<img src="{src}" width="1" height="1" alt="" style="display:none" />'


def connect_gmail(profile: dict[str, Any], code: str, redirect_uri: str) -> dict[str, Any]:
    try:
        tokens = gmail.exchange_code(code, redirect_uri)
    except gmail.GmailError as exc:
        raise ServiceError(str(exc), status_code=400) from exc

    refresh_token = tokens.get("refresh_token")
    if not refresh_token:
        # Google omits the refresh token on re-consent without prompt=consent.
        raise ServiceError("Google did not return a refresh token. Please reconnect and grant access.", status_code=400)

    store.update_profile(
        profile["id"],
        google_refresh_token=refresh_token,
        gmail_token_refreshed_at=store.utc_now().isoformat(),
    )
    logger.info("gmail_connected user=%s", profile["id"])
    return {"success": True, "message": "Gmail connected successfully"}


def disconnect_gmail(profile: dict[str, Any]) -> None:
    store.update_profile(profile["id"], google_refresh_token=None, gmail_token_refreshed_at=None)
    logger.info("gmail_disconnected user=%s", profile["id"])


def send_email(
    profile_id: str,
    *,
    to: str,
    subject: str,
    body: str,
    recruiter: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Send one email through the user's Gmail and record tracking, cooldown, counters and the thread."""
    if _HEADER_BREAK_RE.search(to) or _HEADER_BREAK_RE.search(subject):
        raise ServiceError("Recipient and subject must not contain line breaks", status_code=400)
    profile = _require_profile(profile_id)
    if not profile.get("google_refresh_token"):
        raise ServiceError("Gmail not connected. Please connect your Gmail account first.", status_code=400)

    today = _today()
    limit = email_limit(profile)
    if limit["remaining"] <= 0:
        raise ServiceError(
            f"Daily email limit ({limit['daily_limit']}) reached. Upgrade to send more emails.",
            status_code=429,
        )

    recipient = to.strip().lower()
    now = store.utc_now()
    info = cooldown_info(store.get_active_cooldown(profile["id"], recipient, now.isoformat()), now)
    if info:
        raise ServiceError(
            f"You cannot email this recruiter for {info['days_remaining']} more day(s). "
            f"Cooldown expires on {info['blocked_until'].date().isoformat()}.",
            status_code=409,
        )

    tracking_id = uuid.uuid4().hex
    html_body = to_html_body(body) + tracking_pixel(tracking_id)
    try:
        message_id = gmail.send_message(
            refresh_token=profile["google_refresh_token"],
            sender=profile.get("email"),
            to=recipient,
            subject=subject,
            html_body=html_body,
        )
    except gmail.GmailError as exc:
        raise ServiceError(str(exc), status_code=502) from exc

    store.insert_email_tracking(
        user_id=profile["id"],
        recruiter_email=recipient,
        subject=subject,
        tracking_id=tracking_id,
        gmail_message_id=message_id,
    )
    store.upsert_cooldown(
        profile["id"],
        recipient,
        next_blocked_until(now, settings.email_cooldown_days).isoformat(),
    )
    store.update_profile(
        profile["id"],
        daily_emails_sent=limit["daily_sent"] + 1,
        last_sent_date=today,
        total_emails_sent=int(profile.get("total_emails_sent") or 0) + 1,
        successful_emails=int(profile.get("successful_emails") or 0) + 1,
    )
    try:
        conversation_service.record_outbound(
            profile,
            recipient=recipient,
            subject=subject,
            body=body,
            tracking_id=tracking_id,
            gmail_message_id=message_id,
            recruiter=recruiter,
        )
    except sqlite3.Error:
        logger.exception("conversation_record_failed user=%s to=%s", profile["id"], recipient)
    logger.info("email_sent user=%s to=%s message_id=%s tracking_id=%s", profile["id"], recipient, message_id, tracking_id)
    return {"success": True, "message_id": message_id, "tracking_id": tracking_id}


def send_bulk(profile: dict[str, Any], *, recruiter_ids: list[str], subject: str, body: str) -> dict[str, Any]:
    """Send the composed email to each selected recruiter, one at a time.

    A failed recipient is logged and reported; the loop moves on to the next one.
    """
    if not subject.strip() or not body.strip():
        raise ServiceError("Please fill in subject and body", status_code=400)
    unique_ids = list(dict.fromkeys(recruiter_ids))
    if not unique_ids:
        raise ServiceError("Please select at least one recruiter", status_code=400)
    if not profile.get("google_refresh_token"):
        raise ServiceError("Please connect your Gmail account first", status_code=400)

    limit = email_limit(profile)
    if limit["remaining"] <= 0:
        raise ServiceError(
            f"Daily email limit reached ({limit['daily_limit']}). Upgrade your plan for more emails.",
            status_code=429,
        )
    if len(unique_ids) > limit["remaining"]:
        raise ServiceError(
            f"You can only send {limit['remaining']} more emails today. Please select fewer recipients.",
            status_code=400,
        )

    recruiters = {recruiter["id"]: recruiter for recruiter in store.get_recruiters(unique_ids)}
    results: list[dict[str, Any]] = []
    sent = failed = skipped = 0

    for recruiter_id in unique_ids:
        recruiter = recruiters.get(recruiter_id)
        if recruiter is None:
            skipped += 1
            results.append({"recruiter_id": recruiter_id, "status": "skipped", "error": "Recruiter not found"})
            continue
        if not can_access_recruiter(profile.get("subscription_tier"), recruiter.get("tier")):
            skipped += 1
            results.append(
                {
                    "recruiter_id": recruiter_id,
                    "email": recruiter["email"],
                    "status": "skipped",
                    "error": "You don't have access to this recruiter. Please upgrade your plan.",
                }
            )
            continue

        values = {
            "recruiter_name": recruiter.get("name") or "",
            "company": recruiter.get("company") or "",
            "user_name": profile.get("name") or "",
        }
        try:
            outcome = send_email(
                profile["id"],
                to=recruiter["email"],
                subject=interpolate(subject, values),
                body=interpolate(body, values, escape=bool(_HTML_TAG_RE.search(body))),
                recruiter=recruiter,
            )
        except ServiceError as exc:
            failed += 1
            logger.warning("bulk_send_failed user=%s to=%s: %s", profile["id"], recruiter["email"], exc)
            results.append(
                {"recruiter_id": recruiter_id, "email": recruiter["email"], "status": "failed", "error": str(exc)}
            )
            continue

        sent += 1
        results.append(
            {
                "recruiter_id": recruiter_id,
                "email": recruiter["email"],
                "status": "sent",
                "tracking_id": outcome["tracking_id"],
            }
        )

    logger.info("bulk_send_done user=%s sent=%s failed=%s skipped=%s", profile["id"], sent, failed, skipped)
    return {"sent": sent, "failed": failed, "skipped": skipped, "results": results}
