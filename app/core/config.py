from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    database_path: str
    public_base_url: str
    email_cooldown_days: int
    maintenance_enabled: bool
    maintenance_interval_s: int
    max_upload_bytes: int
    gemini_api_key: str | None
    gemini_model: str
    gemini_base_url: str
    llm_timeout_s: float
    llm_max_retries: int
    razorpay_key_id: str | None
    razorpay_key_secret: str | None
    razorpay_api_base: str
    ats_scan_price: int
    google_client_id: str | None
    google_client_secret: str | None
    google_token_uri: str


settings = Settings(
    api_key=_get_env("API_KEY"),
    rate_limit=_get_env("RATE_LIMIT", "60/minute") or "60/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
            "https://startworking.in",
            "https://www.startworking.in",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", True),
    database_path=_get_env("DATABASE_PATH", "data/jobseeker.db") or "data/jobseeker.db",
    public_base_url=(_get_env("PUBLIC_BASE_URL", "http://localhost:8000") or "http://localhost:8000").rstrip("/"),
    email_cooldown_days=_get_env_int("EMAIL_COOLDOWN_DAYS", 7),
    maintenance_enabled=_get_env_bool("MAINTENANCE_ENABLED", True),
    maintenance_interval_s=_get_env_int("MAINTENANCE_INTERVAL_S", 3600),
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 5 * 1024 * 1024),
    gemini_api_key=_get_env("GEMINI_API_KEY") or _get_env("GOOGLE_GEMINI_API_KEY"),
    gemini_model=_get_env("GEMINI_MODEL", "gemini-2.0-flash") or "gemini-2.0-flash",
    gemini_base_url=_get_env("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/openai/")
    or "https://generativelanguage.googleapis.com/v1beta/openai/",
    llm_timeout_s=_get_env_float("LLM_TIMEOUT_S", 60.0),
    llm_max_retries=_get_env_int("LLM_MAX_RETRIES", 2),
    razorpay_key_id=_get_env("RAZORPAY_KEY_ID"),
    razorpay_key_secret=_get_env("RAZORPAY_KEY_SECRET"),
    razorpay_api_base=(_get_env("RAZORPAY_API_BASE", "https://api.razorpay.com/v1") or "https://api.razorpay.com/v1").rstrip("/"),
    ats_scan_price=_get_env_int("ATS_SCAN_PRICE", 49),
    google_client_id=_get_env("GOOGLE_CLIENT_ID"),
    google_client_secret=_get_env("GOOGLE_CLIENT_SECRET"),
    google_token_uri=_get_env("GOOGLE_TOKEN_URI", "https://oauth2.googleapis.com/token")
    or "https://oauth2.googleapis.com/token",
)

if settings.email_cooldown_days < 0:
    raise RuntimeError("EMAIL_COOLDOWN_DAYS must not be negative.")
