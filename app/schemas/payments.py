from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class PlanResponse(BaseModel):
    id: str
    name: str
    display_name: str | None = None
    price: int
    duration_days: int
    daily_email_limit: int | None = None
    is_active: bool


class PlanCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=80)
    display_name: str | None = Field(default=None, max_length=120)
    price: int = Field(ge=0)
    duration_days: int = Field(default=30, ge=1, le=3660)
    daily_email_limit: int | None = Field(default=None, ge=1)
    is_active: bool = True


class CreateOrderRequest(BaseModel):
    plan_id: str = Field(min_length=1, max_length=100)


class CreateAtsScanOrderRequest(BaseModel):
    analysis_id: str = Field(min_length=1, max_length=100)


class OrderResponse(BaseModel):
    order_id: str
    key_id: str | None = None
    amount: int | None = None
    currency: str = "INR"


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    razorpay_signature: str | None = None


class VerifyPaymentResponse(BaseModel):
    success: bool
    message: str
    subscription_tier: str | None = None
    expires_at: datetime | None = None


class VerifyAtsPaymentResponse(BaseModel):
    success: bool
    analysis_id: str
    payment_status: str


class SubscriptionHistoryItem(BaseModel):
    id: str
    plan_id: str | None = None
    analysis_id: str | None = None
    amount: int
    status: str
    razorpay_order_id: str
    razorpay_payment_id: str | None = None
    expires_at: datetime | None = None
    created_at: datetime
