from __future__ import annotations

import json
import os
import secrets
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from app.core.config import settings

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS profiles (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        name TEXT,
        access_token TEXT NOT NULL UNIQUE,
        subscription_tier TEXT NOT NULL DEFAULT 'FREE',
        subscription_expires_at TEXT,
        google_refresh_token TEXT,
        gmail_token_refreshed_at TEXT,
        daily_emails_sent INTEGER NOT NULL DEFAULT 0,
        last_sent_date TEXT,
        total_emails_sent INTEGER NOT NULL DEFAULT 0,
        successful_emails INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS recruiters (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        company TEXT,
        domain TEXT,
        subdomain TEXT,
        tier TEXT,
        quality_score INTEGER,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS email_cooldowns (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        recruiter_email TEXT NOT NULL,
        blocked_until TEXT NOT NULL,
        email_count INTEGER NOT NULL DEFAULT 1,
        notified_at TEXT,
        created_at TEXT NOT NULL,
        UNIQUE (user_id, recruiter_email)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_email_cooldowns_blocked_until
    ON email_cooldowns (blocked_until)
    """,
    """
    CREATE TABLE IF NOT EXISTS email_tracking (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        recruiter_email TEXT NOT NULL,
        subject TEXT,
        tracking_id TEXT NOT NULL UNIQUE,
        gmail_message_id TEXT,
        status TEXT NOT NULL DEFAULT 'sent',
        sent_at TEXT NOT NULL,
        opened_at TEXT,
        open_count INTEGER NOT NULL DEFAULT 0,
        clicked_at TEXT,
        click_count INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS conversation_threads (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        recruiter_email TEXT NOT NULL,
        recruiter_name TEXT,
        company_name TEXT,
        subject_line TEXT,
        status TEXT NOT NULL DEFAULT 'awaiting_reply',
        total_messages INTEGER NOT NULL DEFAULT 0,
        user_messages_count INTEGER NOT NULL DEFAULT 0,
        recruiter_messages_count INTEGER NOT NULL DEFAULT 0,
        first_contact_at TEXT,
        last_activity_at TEXT,
        last_user_message_at TEXT,
        last_recruiter_message_at TEXT,
        created_at TEXT NOT NULL,
        UNIQUE (user_id, recruiter_email)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS conversation_messages (
        id TEXT PRIMARY KEY,
        thread_id TEXT NOT NULL,
        sender_type TEXT NOT NULL,
        subject TEXT NOT NULL,
        body_preview TEXT,
        body_full TEXT,
        message_number INTEGER NOT NULL,
        status TEXT NOT NULL,
        tracking_id TEXT,
        gmail_message_id TEXT,
        sent_at TEXT NOT NULL,
        opened_at TEXT,
        clicked_at TEXT
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_conversation_messages_thread
    ON conversation_messages (thread_id, message_number)
    """,
    """
    CREATE TABLE IF NOT EXISTS subscription_plans (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        display_name TEXT,
        price INTEGER NOT NULL,
        duration_days INTEGER NOT NULL DEFAULT 30,
        daily_email_limit INTEGER,
        is_active INTEGER NOT NULL DEFAULT 1
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS subscription_history (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        plan_id TEXT,
        analysis_id TEXT,
        amount INTEGER NOT NULL,
        status TEXT NOT NULL,
        razorpay_order_id TEXT NOT NULL UNIQUE,
        razorpay_payment_id TEXT,
        expires_at TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS resume_analyses (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        resume_text TEXT NOT NULL,
        job_description TEXT,
        payment_status TEXT NOT NULL DEFAULT 'pending',
        ats_score INTEGER,
        keyword_match_score INTEGER,
        analysis_result TEXT,
        analysis_data TEXT,
        missing_keywords TEXT,
        matched_keywords TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_notifications (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        message TEXT NOT NULL,
        type TEXT NOT NULL,
        metadata TEXT,
        is_read INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS job_applications (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        company TEXT NOT NULL,
        position TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'applied',
        applied_date TEXT,
        notes TEXT,
        recruiter_id TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS email_templates (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        subject TEXT NOT NULL,
        body TEXT NOT NULL,
        category TEXT,
        created_at TEXT NOT NULL
    )
    """,
)

_JSON_COLUMNS = {
    "resume_analyses": {"analysis_result", "analysis_data", "missing_keywords", "matched_keywords"},
    "user_notifications": {"metadata"},
}

_UPDATABLE_COLUMNS = {
    "profiles": {
        "name",
        "subscription_tier",
        "subscription_expires_at",
        "google_refresh_token",
        "gmail_token_refreshed_at",
        "daily_emails_sent",
        "last_sent_date",
        "total_emails_sent",
        "successful_emails",
    },
    "subscription_history": {"status", "razorpay_payment_id", "expires_at"},
    "resume_analyses": {
        "payment_status",
        "ats_score",
        "keyword_match_score",
        "analysis_result",
        "analysis_data",
        "missing_keywords",
        "matched_keywords",
    },
    "job_applications": {"company", "position", "status", "applied_date", "notes", "recruiter_id"},
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _now_iso() -> str:
    return utc_now().isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


def _get_db_path() -> Path:
    # DATABASE_PATH is resolved per call.
    return Path(os.getenv("DATABASE_PATH") or settings.database_path)


def _connect() -> sqlite3.Connection:
    conn = sqlite3.connect(_get_db_path(), timeout=5)
    conn.row_factory = sqlite3.Row
    return conn


def _decode(table: str, row: sqlite3.Row | None) -> dict[str, Any] | None:
    if row is None:
        return None
    record = dict(row)
    for column in _JSON_COLUMNS.get(table, ()):
        raw = record.get(column)
        record[column] = json.loads(raw) if raw else None
    return record


def _encode(table: str, fields: dict[str, Any]) -> dict[str, Any]:
    encoded = dict(fields)
    for column in _JSON_COLUMNS.get(table, ()):
        if column in encoded and encoded[column] is not None:
            encoded[column] = json.dumps(encoded[column], ensure_ascii=False)
    return encoded


def _insert(table: str, fields: dict[str, Any]) -> None:
    encoded = _encode(table, fields)
    columns = ", ".join(encoded)
    placeholders = ", ".join("?" for _ in encoded)
    with _connect() as conn:
        conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", tuple(encoded.values()))
        conn.commit()


def _update(table: str, row_id: str, fields: dict[str, Any]) -> None:
    allowed = _UPDATABLE_COLUMNS[table]
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Cannot update {table} columns: {sorted(unknown)}")
    if not fields:
        return
    encoded = _encode(table, fields)
    assignments = ", ".join(f"{column} = ?" for column in encoded)
    with _connect() as conn:
        conn.execute(f"UPDATE {table} SET {assignments} WHERE id = ?", (*encoded.values(), row_id))
        conn.commit()


def _fetch_one(table: str, query: str, params: Iterable[Any]) -> dict[str, Any] | None:
    with _connect() as conn:
        row = conn.execute(query, tuple(params)).fetchone()
    return _decode(table, row)


def _fetch_all(table: str, query: str, params: Iterable[Any] = ()) -> list[dict[str, Any]]:
    with _connect() as conn:
        rows = conn.execute(query, tuple(params)).fetchall()
    return [_decode(table, row) for row in rows]


def init_db() -> None:
    db_path = _get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with _connect() as conn:
        for statement in _SCHEMA:
            conn.execute(statement)
        conn.commit()


def ping() -> None:
    with _connect() as conn:
        conn.execute("SELECT 1").fetchone()


# Profiles


def create_profile(*, email: str, name: str | None = None, subscription_tier: str = "FREE") -> dict[str, Any]:
    profile_id = _new_id()
    now = _now_iso()
    _insert(
        "profiles",
        {
            "id": profile_id,
            "email": email.strip().lower(),
            "name": name,
            "access_token": secrets.token_urlsafe(32),
            "subscription_tier": subscription_tier,
            "created_at": now,
            "updated_at": now,
        },
    )
    return get_profile(profile_id)  # type: ignore[return-value]


def get_profile(profile_id: str) -> dict[str, Any] | None:
    return _fetch_one("profiles", "SELECT * FROM profiles WHERE id = ?", (profile_id,))


def get_profile_by_token(access_token: str) -> dict[str, Any] | None:
    return _fetch_one("profiles", "SELECT * FROM profiles WHERE access_token = ?", (access_token,))


def update_profile(profile_id: str, **fields: Any) -> None:
    _update("profiles", profile_id, fields)
    with _connect() as conn:
        conn.execute("UPDATE profiles SET updated_at = ? WHERE id = ?", (_now_iso(), profile_id))
        conn.commit()


def list_expired_paid_profiles(now_iso: str) -> list[dict[str, Any]]:
    return _fetch_all(
        "profiles",
        """
        SELECT * FROM profiles
        WHERE subscription_tier != 'FREE'
          AND subscription_expires_at IS NOT NULL
          AND subscription_expires_at < ?
        """,
        (now_iso,),
    )


# Recruiters


def upsert_recruiter(
    *,
    name: str,
    email: str,
    company: str | None = None,
    domain: str | None = None,
    subdomain: str | None = None,
    tier: str | None = None,
    quality_score: int | None = None,
) -> tuple[dict[str, Any], bool]:
    """Insert a recruiter or refresh the existing row with the same email.

    Returns the stored row and whether it was newly created.
    """
    normalized_email = email.strip().lower()
    existing = _fetch_one("recruiters", "SELECT * FROM recruiters WHERE email = ?", (normalized_email,))
    with _connect() as conn:
        if existing:
            conn.execute(
                """
                UPDATE recruiters
                SET name = ?, company = ?, domain = ?, subdomain = ?, tier = ?, quality_score = ?
                WHERE id = ?
                """,
                (name, company, domain, subdomain, tier, quality_score, existing["id"]),
            )
            recruiter_id = existing["id"]
        else:
            recruiter_id = _new_id()
            conn.execute(
                """
                INSERT INTO recruiters (id, name, email, company, domain, subdomain, tier, quality_score, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (recruiter_id, name, normalized_email, company, domain, subdomain, tier, quality_score, _now_iso()),
            )
        conn.commit()
    return get_recruiter(recruiter_id), existing is None  # type: ignore[return-value]


def get_recruiter(recruiter_id: str) -> dict[str, Any] | None:
    return _fetch_one("recruiters", "SELECT * FROM recruiters WHERE id = ?", (recruiter_id,))


def get_recruiter_by_email(email: str) -> dict[str, Any] | None:
    return _fetch_one("recruiters", "SELECT * FROM recruiters WHERE email = ?", (email.strip().lower(),))


def get_recruiters(recruiter_ids: Iterable[str]) -> list[dict[str, Any]]:
    ids = list(recruiter_ids)
    if not ids:
        return []
    placeholders = ", ".join("?" for _ in ids)
    return _fetch_all("recruiters", f"SELECT * FROM recruiters WHERE id IN ({placeholders}) ORDER BY name", ids)


def list_recruiters() -> list[dict[str, Any]]:
    return _fetch_all("recruiters", "SELECT * FROM recruiters ORDER BY name")


# Cooldowns


def get_active_cooldown(user_id: str, recruiter_email: str, now_iso: str) -> dict[str, Any] | None:
    return _fetch_one(
        "email_cooldowns",
        """
        SELECT * FROM email_cooldowns
        WHERE user_id = ? AND recruiter_email = ? AND blocked_until > ?
        """,
        (user_id, recruiter_email.lower(), now_iso),
    )


def list_active_cooldowns(user_id: str, now_iso: str) -> list[dict[str, Any]]:
    return _fetch_all(
        "email_cooldowns",
        "SELECT * FROM email_cooldowns WHERE user_id = ? AND blocked_until > ? ORDER BY blocked_until",
        (user_id, now_iso),
    )


def upsert_cooldown(user_id: str, recruiter_email: str, blocked_until_iso: str) -> dict[str, Any]:
    email = recruiter_email.lower()
    with _connect() as conn:
        conn.execute(
            """
            INSERT INTO email_cooldowns (id, user_id, recruiter_email, blocked_until, email_count, created_at)
            VALUES (?, ?, ?, ?, 1, ?)
            ON CONFLICT (user_id, recruiter_email) DO UPDATE SET
                blocked_until = excluded.blocked_until,
                email_count = email_cooldowns.email_count + 1,
                notified_at = NULL
            """,
            (_new_id(), user_id, email, blocked_until_iso, _now_iso()),
        )
        conn.commit()
    return _fetch_one(  # type: ignore[return-value]
        "email_cooldowns",
        "SELECT * FROM email_cooldowns WHERE user_id = ? AND recruiter_email = ?",
        (user_id, email),
    )


def list_unnotified_expired_cooldowns(start_iso: str, end_iso: str) -> list[dict[str, Any]]:
    return _fetch_all(
        "email_cooldowns",
        """
        SELECT * FROM email_cooldowns
        WHERE blocked_until < ? AND blocked_until >= ? AND notified_at IS NULL
        ORDER BY user_id, blocked_until
        """,
        (end_iso, start_iso),
    )


def mark_cooldowns_notified(cooldown_ids: Iterable[str], notified_at_iso: str) -> None:
    ids = list(cooldown_ids)
    if not ids:
        return
    placeholders = ", ".join("?" for _ in ids)
    with _connect() as conn:
        conn.execute(
            f"UPDATE email_cooldowns SET notified_at = ? WHERE id IN ({placeholders})",
            (notified_at_iso, *ids),
        )
        conn.commit()


def delete_cooldowns_before(cutoff_iso: str) -> int:
    with _connect() as conn:
        cursor = conn.execute("DELETE FROM email_cooldowns WHERE blocked_until < ?", (cutoff_iso,))
        conn.commit()
        return cursor.rowcount


# Email tracking


def insert_email_tracking(
    *,
    user_id: str,
    recruiter_email: str,
    subject: str,
    tracking_id: str,
    gmail_message_id: str | None,
) -> None:
    _insert(
        "email_tracking",
        {
            "id": _new_id(),
            "user_id": user_id,
            "recruiter_email": recruiter_email.lower(),
            "subject": subject,
            "tracking_id": tracking_id,
            "gmail_message_id": gmail_message_id,
            "status": "sent",
            "sent_at": _now_iso(),
        },
    )


def get_email_tracking(tracking_id: str) -> dict[str, Any] | None:
    return _fetch_one("email_tracking", "SELECT * FROM email_tracking WHERE tracking_id = ?", (tracking_id,))


_EVENT_UPDATES = {
    "open": (
        """
        opened_at = COALESCE(opened_at, ?),
        status = CASE WHEN status = 'sent' THEN 'opened' ELSE status END
        """,
        "open_count = open_count + 1",
    ),
    "click": (
        """
        clicked_at = COALESCE(clicked_at, ?),
        status = 'clicked'
        """,
        "click_count = click_count + 1",
    ),
}


def record_email_event(tracking_id: str, event: str) -> bool:
    """Stamp an open or click on the tracking row and its conversation message."""
    if event not in _EVENT_UPDATES:
        raise ValueError(f"Unsupported tracking event '{event}'")
    assignments, counter = _EVENT_UPDATES[event]
    now = _now_iso()
    with _connect() as conn:
        cursor = conn.execute(
            f"UPDATE email_tracking SET {assignments}, {counter} WHERE tracking_id = ?",
            (now, tracking_id),
        )
        conn.execute(
            f"UPDATE conversation_messages SET {assignments} WHERE tracking_id = ?",
            (now, tracking_id),
        )
        conn.commit()
        return cursor.rowcount > 0


def list_email_history(user_id: str, limit: int = 50) -> list[dict[str, Any]]:
    return _fetch_all(
        "email_tracking",
        "SELECT * FROM email_tracking WHERE user_id = ? ORDER BY sent_at DESC LIMIT ?",
        (user_id, limit),
    )


# Conversations


def get_or_create_thread(
    *,
    user_id: str,
    recruiter_email: str,
    recruiter_name: str | None = None,
    company_name: str | None = None,
    subject_line: str | None = None,
) -> dict[str, Any]:
    email = recruiter_email.strip().lower()
    with _connect() as conn:
        conn.execute(
            """
            INSERT INTO conversation_threads (
                id, user_id, recruiter_email, recruiter_name, company_name, subject_line, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (user_id, recruiter_email) DO UPDATE SET
                recruiter_name = COALESCE(excluded.recruiter_name, conversation_threads.recruiter_name),
                company_name = COALESCE(excluded.company_name, conversation_threads.company_name)
            """,
            (_new_id(), user_id, email, recruiter_name, company_name, subject_line, _now_iso()),
        )
        conn.commit()
    return _fetch_one(  # type: ignore[return-value]
        "conversation_threads",
        "SELECT * FROM conversation_threads WHERE user_id = ? AND recruiter_email = ?",
        (user_id, email),
    )


def add_conversation_message(
    thread_id: str,
    *,
    sender_type: str,
    subject: str,
    body: str,
    tracking_id: str | None = None,
    gmail_message_id: str | None = None,
) -> dict[str, Any]:
    """Append a message and roll the thread's counters and status forward.

    A user message leaves the thread awaiting a reply; a recruiter message
    marks it replied.
    """
    if sender_type not in {"user", "recruiter"}:
        raise ValueError(f"Unsupported sender type '{sender_type}'")
    message_id = _new_id()
    now = _now_iso()
    side = "user" if sender_type == "user" else "recruiter"
    with _connect() as conn:
        row = conn.execute(
            "SELECT COALESCE(MAX(message_number), 0) FROM conversation_messages WHERE thread_id = ?",
            (thread_id,),
        ).fetchone()
        conn.execute(
            """
            INSERT INTO conversation_messages (
                id, thread_id, sender_type, subject, body_preview, body_full,
                message_number, status, tracking_id, gmail_message_id, sent_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                message_id,
                thread_id,
                sender_type,
                subject,
                body[:200],
                body,
                row[0] + 1,
                "sent" if sender_type == "user" else "received",
                tracking_id,
                gmail_message_id,
                now,
            ),
        )
        conn.execute(
            f"""
            UPDATE conversation_threads
            SET total_messages = total_messages + 1,
                {side}_messages_count = {side}_messages_count + 1,
                last_{side}_message_at = ?,
                last_activity_at = ?,
                first_contact_at = COALESCE(first_contact_at, ?),
                subject_line = COALESCE(subject_line, ?),
                status = ?
            WHERE id = ?
            """,
            (now, now, now, subject, "awaiting_reply" if sender_type == "user" else "replied", thread_id),
        )
        conn.commit()
    return _fetch_one(  # type: ignore[return-value]
        "conversation_messages", "SELECT * FROM conversation_messages WHERE id = ?", (message_id,)
    )


def get_thread(thread_id: str, user_id: str) -> dict[str, Any] | None:
    return _fetch_one(
        "conversation_threads",
        "SELECT * FROM conversation_threads WHERE id = ? AND user_id = ?",
        (thread_id, user_id),
    )


def list_threads(user_id: str, status: str | None = None) -> list[dict[str, Any]]:
    query = "SELECT * FROM conversation_threads WHERE user_id = ?"
    params: list[Any] = [user_id]
    if status:
        query += " AND status = ?"
        params.append(status)
    query += " ORDER BY last_activity_at DESC"
    return _fetch_all("conversation_threads", query, params)


def list_thread_messages(thread_id: str) -> list[dict[str, Any]]:
    return _fetch_all(
        "conversation_messages",
        "SELECT * FROM conversation_messages WHERE thread_id = ? ORDER BY message_number",
        (thread_id,),
    )


def update_thread_status(thread_id: str, user_id: str, status: str) -> bool:
    with _connect() as conn:
        cursor = conn.execute(
            "UPDATE conversation_threads SET status = ? WHERE id = ? AND user_id = ?",
            (status, thread_id, user_id),
        )
        conn.commit()
        return cursor.rowcount > 0



# Plans and subscription history


def create_plan(
    *,
    name: str,
    price: int,
    duration_days: int = 30,
    display_name: str | None = None,
    daily_email_limit: int | None = None,
    is_active: bool = True,
) -> dict[str, Any]:
    plan_id = _new_id()
    _insert(
        "subscription_plans",
        {
            "id": plan_id,
            "name": name,
            "display_name": display_name,
            "price": price,
            "duration_days": duration_days,
            "daily_email_limit": daily_email_limit,
            "is_active": 1 if is_active else 0,
        },
    )
    return get_plan(plan_id)  # type: ignore[return-value]


def get_plan(plan_id: str) -> dict[str, Any] | None:
    return _fetch_one("subscription_plans", "SELECT * FROM subscription_plans WHERE id = ?", (plan_id,))


def get_plan_by_name(name: str) -> dict[str, Any] | None:
    return _fetch_one(
        "subscription_plans",
        "SELECT * FROM subscription_plans WHERE UPPER(name) = UPPER(?) AND is_active = 1",
        (name,),
    )


def list_plans(active_only: bool = True) -> list[dict[str, Any]]:
    if active_only:
        return _fetch_all("subscription_plans", "SELECT * FROM subscription_plans WHERE is_active = 1 ORDER BY price")
    return _fetch_all("subscription_plans", "SELECT * FROM subscription_plans ORDER BY price")


def insert_subscription(
    *,
    user_id: str,
    amount: int,
    razorpay_order_id: str,
    plan_id: str | None = None,
    analysis_id: str | None = None,
) -> None:
    _insert(
        "subscription_history",
        {
            "id": _new_id(),
            "user_id": user_id,
            "plan_id": plan_id,
            "analysis_id": analysis_id,
            "amount": amount,
            "status": "pending",
            "razorpay_order_id": razorpay_order_id,
            "created_at": _now_iso(),
        },
    )


def get_subscription_by_order(razorpay_order_id: str, user_id: str) -> dict[str, Any] | None:
    return _fetch_one(
        "subscription_history",
        "SELECT * FROM subscription_history WHERE razorpay_order_id = ? AND user_id = ?",
        (razorpay_order_id, user_id),
    )


def update_subscription(subscription_id: str, **fields: Any) -> None:
    _update("subscription_history", subscription_id, fields)


def list_subscriptions(user_id: str) -> list[dict[str, Any]]:
    return _fetch_all(
        "subscription_history",
        "SELECT * FROM subscription_history WHERE user_id = ? ORDER BY created_at DESC",
        (user_id,),
    )


# Resume analyses


def create_analysis(
    *,
    user_id: str,
    resume_text: str,
    job_description: str | None,
    payment_status: str,
) -> dict[str, Any]:
    analysis_id = _new_id()
    now = _now_iso()
    _insert(
        "resume_analyses",
        {
            "id": analysis_id,
            "user_id": user_id,
            "resume_text": resume_text,
            "job_description": job_description,
            "payment_status": payment_status,
            "created_at": now,
            "updated_at": now,
        },
    )
    return get_analysis(analysis_id, user_id)  # type: ignore[return-value]


def get_analysis(analysis_id: str, user_id: str) -> dict[str, Any] | None:
    return _fetch_one(
        "resume_analyses",
        "SELECT * FROM resume_analyses WHERE id = ? AND user_id = ?",
        (analysis_id, user_id),
    )


def update_analysis(analysis_id: str, **fields: Any) -> None:
    _update("resume_analyses", analysis_id, fields)
    with _connect() as conn:
        conn.execute("UPDATE resume_analyses SET updated_at = ? WHERE id = ?", (_now_iso(), analysis_id))
        conn.commit()


def list_analyses(user_id: str) -> list[dict[str, Any]]:
    return _fetch_all(
        "resume_analyses",
        "SELECT * FROM resume_analyses WHERE user_id = ? ORDER BY created_at DESC",
        (user_id,),
    )


# Notifications


def create_notification(
    *,
    user_id: str,
    title: str,
    message: str,
    type: str,
    metadata: dict[str, Any] | None = None,
) -> None:
    _insert(
        "user_notifications",
        {
            "id": _new_id(),
            "user_id": user_id,
            "title": title,
            "message": message,
            "type": type,
            "metadata": metadata,
            "is_read": 0,
            "created_at": _now_iso(),
        },
    )


def list_notifications(user_id: str, unread_only: bool = False) -> list[dict[str, Any]]:
    query = "SELECT * FROM user_notifications WHERE user_id = ?"
    if unread_only:
        query += " AND is_read = 0"
    query += " ORDER BY created_at DESC"
    return _fetch_all("user_notifications", query, (user_id,))


def mark_notification_read(notification_id: str, user_id: str) -> bool:
    with _connect() as conn:
        cursor = conn.execute(
            "UPDATE user_notifications SET is_read = 1 WHERE id = ? AND user_id = ?",
            (notification_id, user_id),
        )
        conn.commit()
        return cursor.rowcount > 0


# Job applications


def create_application(
    *,
    user_id: str,
    company: str,
    position: str,
    status: str = "applied",
    applied_date: str | None = None,
    notes: str | None = None,
    recruiter_id: str | None = None,
) -> dict[str, Any]:
    application_id = _new_id()
    now = _now_iso()
    _insert(
        "job_applications",
        {
            "id": application_id,
            "user_id": user_id,
            "company": company,
            "position": position,
            "status": status,
            "applied_date": applied_date,
            "notes": notes,
            "recruiter_id": recruiter_id,
            "created_at": now,
            "updated_at": now,
        },
    )
    return get_application(application_id, user_id)  # type: ignore[return-value]


def get_application(application_id: str, user_id: str) -> dict[str, Any] | None:
    return _fetch_one(
        "job_applications",
        "SELECT * FROM job_applications WHERE id = ? AND user_id = ?",
        (application_id, user_id),
    )


def list_applications(user_id: str, status: str | None = None) -> list[dict[str, Any]]:
    if status:
        return _fetch_all(
            "job_applications",
            "SELECT * FROM job_applications WHERE user_id = ? AND status = ? ORDER BY created_at DESC",
            (user_id, status),
        )
    return _fetch_all(
        "job_applications",
        "SELECT * FROM job_applications WHERE user_id = ? ORDER BY created_at DESC",
        (user_id,),
    )


def update_application(application_id: str, **fields: Any) -> None:
    _update("job_applications", application_id, fields)
    with _connect() as conn:
        conn.execute("UPDATE job_applications SET updated_at = ? WHERE id = ?", (_now_iso(), application_id))
        conn.commit()


def delete_application(application_id: str, user_id: str) -> bool:
    with _connect() as conn:
        cursor = conn.execute(
            "DELETE FROM job_applications WHERE id = ? AND user_id = ?",
            (application_id, user_id),
        )
        conn.commit()
        return cursor.rowcount > 0


# Email templates


def create_email_template(
    *,
    user_id: str,
    name: str,
    subject: str,
    body: str,
    category: str | None = None,
) -> dict[str, Any]:
    template_id = _new_id()
    _insert(
        "email_templates",
        {
            "id": template_id,
            "user_id": user_id,
            "name": name,
            "subject": subject,
            "body": body,
            "category": category,
            "created_at": _now_iso(),
        },
    )
    return _fetch_one("email_templates", "SELECT * FROM email_templates WHERE id = ?", (template_id,))  # type: ignore[return-value]


def list_email_templates(user_id: str) -> list[dict[str, Any]]:
    return _fetch_all(
        "email_templates",
        "SELECT * FROM email_templates WHERE user_id = ? ORDER BY created_at DESC",
        (user_id,),
    )


def delete_email_template(template_id: str, user_id: str) -> bool:
    with _connect() as conn:
        cursor = conn.execute(
            "DELETE FROM email_templates WHERE id = ? AND user_id = ?",
            (template_id, user_id),
        )
        conn.commit()
        return cursor.rowcount > 0
