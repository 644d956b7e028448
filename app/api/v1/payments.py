from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from app.core.rate_limit import rate_limit
from app.core.security import require_user
from app.db import store
from app.schemas.payments import (
    CreateAtsScanOrderRequest,
    CreateOrderRequest,
    OrderResponse,
    PlanResponse,
    SubscriptionHistoryItem,
    VerifyAtsPaymentResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from app.services import payment_service
from app.services.errors import ServiceError

router = APIRouter()


def _raise_service_error(exc: ServiceError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.get("/payments/plans", response_model=list[PlanResponse])
async def list_plans():
    return store.list_plans()


@router.post("/payments/orders", response_model=OrderResponse)
@rate_limit("10/minute")
def create_order(request: Request, payload: CreateOrderRequest, profile: dict[str, Any] = Depends(require_user)):
    _ = request
    try:
        return payment_service.create_order(profile, payload.plan_id)
    except ServiceError as exc:
        _raise_service_error(exc)


@router.post("/payments/verify", response_model=VerifyPaymentResponse)
async def verify_payment(payload: VerifyPaymentRequest, profile: dict[str, Any] = Depends(require_user)):
    try:
        return payment_service.verify_payment(
            profile,
            order_id=payload.razorpay_order_id,
            payment_id=payload.razorpay_payment_id,
            signature=payload.razorpay_signature,
        )
    except ServiceError as exc:
        _raise_service_error(exc)


@router.post("/payments/ats-scan/orders", response_model=OrderResponse)
@rate_limit("10/minute")
def create_ats_scan_order(
    request: Request,
    payload: CreateAtsScanOrderRequest,
    profile: dict[str, Any] = Depends(require_user),
):
    _ = request
    try:
        return payment_service.create_ats_scan_order(profile, payload.analysis_id)
    except ServiceError as exc:
        _raise_service_error(exc)


@router.post("/payments/ats-scan/verify", response_model=VerifyAtsPaymentResponse)
async def verify_ats_payment(payload: VerifyPaymentRequest, profile: dict[str, Any] = Depends(require_user)):
    try:
        return payment_service.verify_ats_payment(
            profile,
            order_id=payload.razorpay_order_id,
            payment_id=payload.razorpay_payment_id,
            signature=payload.razorpay_signature,
        )
    except ServiceError as exc:
        _raise_service_error(exc)


@router.get("/payments/history", response_model=list[SubscriptionHistoryItem])
async def payment_history(profile: dict[str, Any] = Depends(require_user)):
    return store.list_subscriptions(profile["id"])
