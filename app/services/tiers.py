from __future__ import annotations

from typing import Any, Literal

Tier = Literal["FREE", "PRO", "PRO_MAX"]

TIER_ORDER: tuple[Tier, ...] = ("FREE", "PRO", "PRO_MAX")

DAILY_EMAIL_LIMITS: dict[Tier, int] = {
    "FREE": 5,
    "PRO": 50,
    "PRO_MAX": 1000,
}


def normalize_tier(raw: str | None) -> Tier:
    """Map a free-text tier or plan name onto one of the three tiers.

    Plan names are admin-defined ("Pro Max Yearly", "pro-monthly"), so anything
    that is not an exact tier falls back to substring checks and finally FREE.
    """
    if not raw:
        return "FREE"
    clean = raw.strip().upper()
    if clean in TIER_ORDER:
        return clean  # type: ignore[return-value]
    if "PRO" in clean and "MAX" in clean:
        return "PRO_MAX"
    if "PRO" in clean:
        return "PRO"
    return "FREE"


def get_tier_level(raw: str | None) -> int:
    return TIER_ORDER.index(normalize_tier(raw))


def can_access_recruiter(user_tier: str | None, recruiter_tier: str | None) -> bool:
    return get_tier_level(recruiter_tier) <= get_tier_level(user_tier)


def is_paid_tier(raw: str | None) -> bool:
    return get_tier_level(raw) > 0


def daily_email_limit(tier: str | None, plan: dict[str, Any] | None = None) -> int:
    if plan and plan.get("daily_email_limit"):
        return int(plan["daily_email_limit"])
    return DAILY_EMAIL_LIMITS[normalize_tier(tier)]


def emails_sent_today(profile: dict[str, Any], today: str) -> int:
    if profile.get("last_sent_date") != today:
        return 0
    return int(profile.get("daily_emails_sent") or 0)


def email_limit_status(profile: dict[str, Any], today: str, plan: dict[str, Any] | None = None) -> dict[str, int]:
    limit = daily_email_limit(profile.get("subscription_tier"), plan)
    sent = emails_sent_today(profile, today)
    return {"daily_limit": limit, "daily_sent": sent, "remaining": max(0, limit - sent)}
