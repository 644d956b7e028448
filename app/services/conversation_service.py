from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any

from app.db import store
from app.services.errors import ServiceError
from app.services.llm import LLMError, text_completion

logger = logging.getLogger(__name__)

THREAD_STATUSES = ("awaiting_reply", "replied", "closed")

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

_DRAFT_INSTRUCTIONS = """You are an expert job application email writer. Write professional, personalized cold emails to recruiters.
The emails should be:
- Professional but warm
- Concise (under 200 words)
- Highlight relevant skills
- Include a clear call-to-action
- Avoid generic phrases and cliches

Return your response as JSON with "subject" and "body" fields."""

_FOLLOW_UP_INSTRUCTIONS = """You are an expert at writing professional follow-up emails. Generate a polite, professional follow-up email that:
- References the previous email without being pushy
- Adds value or new information if possible
- Has a clear but soft call-to-action
- Is concise (under 150 words)

Return your response as JSON with "subject", "body", "priority" (low/medium/high), and "reason" fields."""


def _extract_object(content: str) -> dict[str, Any] | None:
    match = _JSON_OBJECT_RE.search(content)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict) or not parsed.get("subject") or not parsed.get("body"):
        return None
    return parsed


def _complete(prompt: str, *, purpose: str) -> str:
    try:
        return text_completion(prompt=prompt, temperature=0.7, max_output_tokens=1024, purpose=purpose)
    except LLMError as exc:
        logger.error("%s_failed code=%s: %s", purpose, exc.code, exc)
        if exc.code == "llm_disabled":
            raise ServiceError(str(exc), status_code=500) from exc
        raise ServiceError(f"Failed to generate email content: {exc}", status_code=500) from exc


def record_outbound(
    profile: dict[str, Any],
    *,
    recipient: str,
    subject: str,
    body: str,
    tracking_id: str,
    gmail_message_id: str | None,
    recruiter: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Append a sent email to the user's thread with this recipient, opening the thread if needed."""
    if recruiter is None:
        recruiter = store.get_recruiter_by_email(recipient)
    thread = store.get_or_create_thread(
        user_id=profile["id"],
        recruiter_email=recipient,
        recruiter_name=(recruiter or {}).get("name"),
        company_name=(recruiter or {}).get("company"),
        subject_line=subject,
    )
    return store.add_conversation_message(
        thread["id"],
        sender_type="user",
        subject=subject,
        body=body,
        tracking_id=tracking_id,
        gmail_message_id=gmail_message_id,
    )


def list_threads(profile: dict[str, Any], status: str | None = None) -> list[dict[str, Any]]:
    if status is not None and status not in THREAD_STATUSES:
        raise ServiceError(f"Unknown thread status '{status}'", status_code=400)
    return store.list_threads(profile["id"], status)


def _require_thread(profile: dict[str, Any], thread_id: str) -> dict[str, Any]:
    thread = store.get_thread(thread_id, profile["id"])
    if not thread:
        raise ServiceError("Thread not found", status_code=404)
    return thread


def get_thread_detail(profile: dict[str, Any], thread_id: str) -> dict[str, Any]:
    thread = _require_thread(profile, thread_id)
    return {**thread, "messages": store.list_thread_messages(thread_id)}


def log_reply(profile: dict[str, Any], thread_id: str, *, subject: str, body: str) -> dict[str, Any]:
    """Record a recruiter's reply pasted in by the user."""
    _require_thread(profile, thread_id)
    message = store.add_conversation_message(thread_id, sender_type="recruiter", subject=subject, body=body)
    logger.info("conversation_reply_logged user=%s thread=%s", profile["id"], thread_id)
    return message


def update_status(profile: dict[str, Any], thread_id: str, status: str) -> dict[str, Any]:
    if status not in THREAD_STATUSES:
        raise ServiceError(f"Unknown thread status '{status}'", status_code=400)
    if not store.update_thread_status(thread_id, profile["id"], status):
        raise ServiceError("Thread not found", status_code=404)
    return get_thread_detail(profile, thread_id)


def build_draft_prompt(
    profile: dict[str, Any],
    *,
    domain: str,
    recruiter_name: str | None = None,
    company_name: str | None = None,
    job_title: str | None = None,
    professional_title: str | None = None,
    bio: str | None = None,
) -> str:
    lines = [
        _DRAFT_INSTRUCTIONS,
        "",
        "Write an email for a job seeker with the following details:",
        f"- Name: {profile.get('name') or 'Job Seeker'}",
        f"- Title: {professional_title or 'Professional'}",
        f"- Bio: {bio or 'Experienced professional seeking new opportunities'}",
        f"- Domain: {domain}",
    ]
    if recruiter_name:
        lines.append(f"- Recruiter Name: {recruiter_name}")
    if company_name:
        lines.append(f"- Company: {company_name}")
    if job_title:
        lines.append(f"- Target Role: {job_title}")
    lines.extend(["", "Generate a compelling cold email subject line and body."])
    return "\n".join(lines)


def draft_email(profile: dict[str, Any], *, domain: str, **details: str | None) -> dict[str, str]:
    """Ask the model for a cold email; free-form output becomes the body under a generic subject."""
    content = _complete(build_draft_prompt(profile, domain=domain, **details), purpose="email_draft")
    parsed = _extract_object(content)
    if parsed is None:
        logger.warning("email_draft_unstructured user=%s len=%s", profile["id"], len(content))
        return {"subject": f"Interested in {domain} opportunities", "body": content}
    return {"subject": str(parsed["subject"]), "body": str(parsed["body"])}


def _days_since(value: Any, now: datetime) -> int:
    if not value:
        return 7
    last = datetime.fromisoformat(str(value))
    return max(0, (now - last).days)


def suggest_follow_up(profile: dict[str, Any], thread_id: str) -> dict[str, str]:
    thread = _require_thread(profile, thread_id)
    days = _days_since(thread.get("last_activity_at"), store.utc_now())
    prompt = "\n".join(
        [
            _FOLLOW_UP_INSTRUCTIONS,
            "",
            "Generate a follow-up email for:",
            f"- Sender: {profile.get('name') or 'Job Seeker'}",
            f"- Recipient: {thread.get('recruiter_name') or 'Recruiter'} at {thread.get('company_name') or 'Company'}",
            f"- Days since last contact: {days}",
            f"- Original subject: {thread.get('subject_line') or 'Job Opportunity'}",
            f"- Thread status: {thread['status']}",
            f"- Total messages in thread: {thread.get('total_messages') or 1}",
            f"- Recruiter has replied: {'Yes' if thread.get('recruiter_messages_count') else 'No'}",
        ]
    )
    content = _complete(prompt, purpose="follow_up")
    fallback_priority = "high" if days > 7 else "medium"
    parsed = _extract_object(content)
    if parsed is None:
        return {
            "subject": f"Following up: {thread.get('subject_line') or 'Our conversation'}",
            "body": content,
            "priority": fallback_priority,
            "reason": f"{days} days since last contact",
        }
    priority = str(parsed.get("priority") or "").lower()
    return {
        "subject": str(parsed["subject"]),
        "body": str(parsed["body"]),
        "priority": priority if priority in {"low", "medium", "high"} else fallback_priority,
        "reason": str(parsed.get("reason") or f"{days} days since last contact"),
    }
