from datetime import datetime, timedelta, timezone

import pytest

from app.services.cooldowns import cooldown_info, index_active_cooldowns, summarize_recipients
from app.services.tiers import (
    can_access_recruiter,
    daily_email_limit,
    email_limit_status,
    get_tier_level,
    normalize_tier,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, "FREE"),
        ("", "FREE"),
        ("  pro ", "PRO"),
        ("PRO_MAX", "PRO_MAX"),
        ("Pro Max Yearly", "PRO_MAX"),
        ("pro-monthly", "PRO"),
        ("basic", "FREE"),
    ],
)
def test_normalize_tier(raw, expected) -> None:
    assert normalize_tier(raw) == expected


def test_tier_levels_and_access_ordering() -> None:
    assert [get_tier_level(t) for t in ("FREE", "PRO", "PRO_MAX")] == [0, 1, 2]
    assert can_access_recruiter("PRO", "FREE")
    assert can_access_recruiter("PRO", "PRO")
    assert not can_access_recruiter("PRO", "PRO_MAX")
    assert not can_access_recruiter(None, "PRO")
    assert can_access_recruiter("Pro Max", "PRO_MAX")


def test_daily_limits_with_plan_override() -> None:
    assert daily_email_limit("FREE") == 5
    assert daily_email_limit("PRO") == 50
    assert daily_email_limit("PRO_MAX") == 1000
    assert daily_email_limit("PRO", {"daily_email_limit": 75}) == 75
    assert daily_email_limit("PRO", {"daily_email_limit": None}) == 50


def test_daily_count_resets_on_a_new_day() -> None:
    profile = {"subscription_tier": "FREE", "daily_emails_sent": 4, "last_sent_date": "2024-05-31"}
    assert email_limit_status(profile, "2024-06-01") == {"daily_limit": 5, "daily_sent": 0, "remaining": 5}
    assert email_limit_status(profile, "2024-05-31") == {"daily_limit": 5, "daily_sent": 4, "remaining": 1}


def test_cooldown_info_rounds_days_up() -> None:
    row = {"blocked_until": (NOW + timedelta(days=6, hours=1)).isoformat()}
    info = cooldown_info(row, NOW)
    assert info is not None
    assert info["days_remaining"] == 7

    assert cooldown_info({"blocked_until": NOW.isoformat()}, NOW) is None
    assert cooldown_info(None, NOW) is None


def test_active_cooldowns_are_indexed_case_insensitively() -> None:
    rows = [
        {"recruiter_email": "Hiring@Acme.com", "blocked_until": (NOW + timedelta(days=2)).isoformat()},
        {"recruiter_email": "old@beta.com", "blocked_until": (NOW - timedelta(days=1)).isoformat()},
    ]
    indexed = index_active_cooldowns(rows, NOW)
    assert set(indexed) == {"hiring@acme.com"}
    assert indexed["hiring@acme.com"]["days_remaining"] == 2


def test_summarize_recipients() -> None:
    assert summarize_recipients(["a@x.com"]) == "a@x.com"
    assert summarize_recipients(["a", "b", "c", "d", "e"]) == "a, b, c and 2 more"
