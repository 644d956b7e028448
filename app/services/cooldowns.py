from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Any

_DAY_SECONDS = 24 * 60 * 60


def parse_timestamp(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def cooldown_info(cooldown: dict[str, Any] | None, now: datetime) -> dict[str, Any] | None:
    if not cooldown:
        return None
    blocked_until = parse_timestamp(cooldown["blocked_until"])
    if blocked_until <= now:
        return None
    days_remaining = math.ceil((blocked_until - now).total_seconds() / _DAY_SECONDS)
    return {"blocked_until": blocked_until, "days_remaining": days_remaining}


def index_active_cooldowns(cooldowns: list[dict[str, Any]], now: datetime) -> dict[str, dict[str, Any]]:
    """Active cooldown info keyed by lower-cased recruiter email."""
    indexed: dict[str, dict[str, Any]] = {}
    for cooldown in cooldowns:
        info = cooldown_info(cooldown, now)
        if info:
            indexed[cooldown["recruiter_email"].lower()] = info
    return indexed


def next_blocked_until(now: datetime, cooldown_days: int) -> datetime:
    return now + timedelta(days=cooldown_days)


def summarize_recipients(emails: list[str], limit: int = 3) -> str:
    if len(emails) > limit:
        return f"{', '.join(emails[:limit])} and {len(emails) - limit} more"
    return ", ".join(emails)
