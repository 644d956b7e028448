from __future__ import annotations

import hashlib
import hmac
import logging
import time
from typing import Any

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class RazorpayError(RuntimeError):
    pass


def _credentials() -> tuple[str, str]:
    if not settings.razorpay_key_id or not settings.razorpay_key_secret:
        raise RazorpayError("Razorpay is not configured")
    return settings.razorpay_key_id, settings.razorpay_key_secret


def create_order(*, amount_rupees: int, notes: dict[str, str], receipt_prefix: str = "order") -> dict[str, Any]:
    """Create an INR order; Razorpay amounts are in paise."""
    key_id, key_secret = _credentials()
    body = {
        "amount": amount_rupees * 100,
        "currency": "INR",
        "receipt": f"{receipt_prefix}_{int(time.time() * 1000)}",
        "notes": notes,
    }
    try:
        response = httpx.post(
            f"{settings.razorpay_api_base}/orders",
            json=body,
            auth=(key_id, key_secret),
            timeout=15,
        )
    except httpx.HTTPError as exc:
        logger.exception("razorpay_order_request_failed: %s", exc)
        raise RazorpayError("Failed to create Razorpay order") from exc

    if response.status_code >= 400:
        logger.error("razorpay_order_rejected status=%s body=%s", response.status_code, response.text[:500])
        raise RazorpayError("Failed to create Razorpay order")

    order = response.json()
    logger.info("razorpay_order_created id=%s amount=%s", order.get("id"), order.get("amount"))
    return order


def expected_signature(order_id: str, payment_id: str, key_secret: str | None = None) -> str:
    secret = key_secret if key_secret is not None else _credentials()[1]
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(order_id: str, payment_id: str, signature: str, key_secret: str | None = None) -> bool:
    return hmac.compare_digest(expected_signature(order_id, payment_id, key_secret), signature)
