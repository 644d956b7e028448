from __future__ import annotations

import logging
from collections import defaultdict
from datetime import timedelta
from typing import Any

from app.db import store
from app.services.cooldowns import summarize_recipients

logger = logging.getLogger(__name__)

NOTIFY_WINDOW = timedelta(hours=24)
RETENTION = timedelta(days=7)


def cleanup_cooldowns() -> dict[str, int]:
    """Notify users about cooldowns that lapsed in the last day, then drop stale rows.

    Each lapsed cooldown is announced once; rows are stamped with
    ``notified_at`` so repeated runs inside the window stay quiet.
    """
    now = store.utc_now()
    expired = store.list_unnotified_expired_cooldowns((now - NOTIFY_WINDOW).isoformat(), now.isoformat())

    by_user: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for cooldown in expired:
        by_user[cooldown["user_id"]].append(cooldown)

    notifications = 0
    for user_id, cooldowns in by_user.items():
        emails = [cooldown["recruiter_email"] for cooldown in cooldowns]
        plural = "s" if len(emails) > 1 else ""
        try:
            store.create_notification(
                user_id=user_id,
                title="Cooldown Period Ended",
                message=(
                    f"You can now email {len(emails)} recruiter{plural} again: "
                    f"{summarize_recipients(emails)}"
                ),
                type="cooldown_expired",
                metadata={"recruiter_emails": emails, "count": len(emails)},
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("cooldown_notification_failed user=%s: %s", user_id, exc)
            continue
        store.mark_cooldowns_notified((cooldown["id"] for cooldown in cooldowns), now.isoformat())
        notifications += 1

    deleted = store.delete_cooldowns_before((now - RETENTION).isoformat())
    logger.info(
        "cooldown_cleanup expired=%s notifications=%s deleted=%s",
        len(expired),
        notifications,
        deleted,
    )
    return {"expired_cooldowns": len(expired), "notifications_sent": notifications, "deleted_cooldowns": deleted}


def check_subscription_expiry() -> dict[str, int]:
    """Downgrade paid profiles whose subscription has lapsed."""
    now_iso = store.utc_now().isoformat()
    expired = store.list_expired_paid_profiles(now_iso)
    for profile in expired:
        store.update_profile(profile["id"], subscription_tier="FREE", subscription_expires_at=None)
        try:
            store.create_notification(
                user_id=profile["id"],
                title="Subscription Expired",
                message=(
                    f"Your {profile['subscription_tier']} subscription has expired. "
                    "You have been moved to the FREE plan."
                ),
                type="warning",
                metadata={"previous_tier": profile["subscription_tier"]},
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("expiry_notification_failed user=%s: %s", profile["id"], exc)
    if expired:
        logger.info("subscriptions_expired count=%s", len(expired))
    return {"expired_subscriptions": len(expired)}


def run_all() -> dict[str, Any]:
    return {**cleanup_cooldowns(), **check_subscription_expiry()}
