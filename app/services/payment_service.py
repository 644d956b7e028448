from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from app.core.config import settings
from app.db import store
from app.integrations import razorpay
from app.services.errors import ServiceError
from app.services.tiers import normalize_tier

logger = logging.getLogger(__name__)

DEFAULT_DURATION_DAYS = 30


def _order(amount: int, notes: dict[str, str], receipt_prefix: str) -> dict[str, Any]:
    try:
        return razorpay.create_order(amount_rupees=amount, notes=notes, receipt_prefix=receipt_prefix)
    except razorpay.RazorpayError as exc:
        raise ServiceError(str(exc), status_code=502) from exc


def _check_signature(order_id: str | None, payment_id: str | None, signature: str | None) -> None:
    if not order_id or not payment_id or not signature:
        logger.error(
            "razorpay_verification_missing_fields order_id=%s payment_id=%s signature=%s",
            order_id,
            payment_id,
            f"{signature[:8]}..." if signature else None,
        )
        raise ServiceError("Missing Razorpay verification fields", status_code=400)
    try:
        valid = razorpay.verify_signature(order_id, payment_id, signature)
    except razorpay.RazorpayError as exc:
        raise ServiceError(str(exc), status_code=500) from exc
    if not valid:
        logger.error(
            "razorpay_signature_mismatch order_id=%s payment_id=%s provided=%s...",
            order_id,
            payment_id,
            signature[:8],
        )
        raise ServiceError("Invalid payment signature", status_code=400)


def create_order(profile: dict[str, Any], plan_id: str) -> dict[str, Any]:
    plan = store.get_plan(plan_id)
    if not plan or not plan.get("is_active"):
        raise ServiceError("Plan not found", status_code=404)
    if int(plan["price"]) <= 0:
        raise ServiceError("This plan does not require payment", status_code=400)

    order = _order(int(plan["price"]), {"plan_id": plan_id, "user_id": profile["id"]}, "order")
    store.insert_subscription(
        user_id=profile["id"],
        plan_id=plan_id,
        amount=int(plan["price"]),
        razorpay_order_id=order["id"],
    )
    return {
        "order_id": order["id"],
        "key_id": settings.razorpay_key_id,
        "amount": order.get("amount"),
        "currency": order.get("currency", "INR"),
    }


def verify_payment(
    profile: dict[str, Any],
    *,
    order_id: str | None,
    payment_id: str | None,
    signature: str | None,
) -> dict[str, Any]:
    _check_signature(order_id, payment_id, signature)
    logger.info("razorpay_payment_verified payment_id=%s", payment_id)

    subscription = store.get_subscription_by_order(order_id, profile["id"])  # type: ignore[arg-type]
    if not subscription or not subscription.get("plan_id"):
        raise ServiceError("Subscription not found", status_code=404)
    if subscription["status"] == "completed":
        # Repeat verification of an already applied payment is a no-op.
        return {
            "success": True,
            "message": "Payment already verified",
            "subscription_tier": profile.get("subscription_tier"),
            "expires_at": subscription.get("expires_at"),
        }

    plan = store.get_plan(subscription["plan_id"]) or {}
    duration_days = int(plan.get("duration_days") or DEFAULT_DURATION_DAYS)
    expires_at = (store.utc_now() + timedelta(days=duration_days)).isoformat()
    tier = normalize_tier(plan.get("name")) if plan.get("name") else "PRO"
    if tier == "FREE":
        tier = "PRO"

    store.update_subscription(
        subscription["id"],
        status="completed",
        razorpay_payment_id=payment_id,
        expires_at=expires_at,
    )
    store.update_profile(profile["id"], subscription_tier=tier, subscription_expires_at=expires_at)
    try:
        store.create_notification(
            user_id=profile["id"],
            title="Payment Successful",
            message=f"Your {plan.get('display_name') or plan.get('name') or tier} plan is active until {expires_at[:10]}.",
            type="success",
            metadata={"order_id": order_id, "payment_id": payment_id, "amount": subscription["amount"]},
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("payment_notification_failed user=%s: %s", profile["id"], exc)

    return {
        "success": True,
        "message": "Payment verified successfully",
        "subscription_tier": tier,
        "expires_at": expires_at,
    }


def create_ats_scan_order(profile: dict[str, Any], analysis_id: str) -> dict[str, Any]:
    analysis = store.get_analysis(analysis_id, profile["id"])
    if not analysis:
        raise ServiceError("Analysis not found", status_code=404)
    if analysis.get("payment_status") == "completed":
        raise ServiceError("This analysis is already paid for", status_code=400)

    amount = settings.ats_scan_price
    order = _order(amount, {"analysis_id": analysis_id, "user_id": profile["id"]}, "ats_scan")
    store.insert_subscription(
        user_id=profile["id"],
        analysis_id=analysis_id,
        amount=amount,
        razorpay_order_id=order["id"],
    )
    return {
        "order_id": order["id"],
        "key_id": settings.razorpay_key_id,
        "amount": order.get("amount"),
        "currency": order.get("currency", "INR"),
    }


def verify_ats_payment(
    profile: dict[str, Any],
    *,
    order_id: str | None,
    payment_id: str | None,
    signature: str | None,
) -> dict[str, Any]:
    _check_signature(order_id, payment_id, signature)
    record = store.get_subscription_by_order(order_id, profile["id"])  # type: ignore[arg-type]
    if not record or not record.get("analysis_id"):
        raise ServiceError("ATS scan order not found", status_code=404)

    store.update_subscription(record["id"], status="completed", razorpay_payment_id=payment_id)
    store.update_analysis(record["analysis_id"], payment_status="completed")
    logger.info("ats_scan_paid analysis=%s payment_id=%s", record["analysis_id"], payment_id)
    return {"success": True, "analysis_id": record["analysis_id"], "payment_status": "completed"}
