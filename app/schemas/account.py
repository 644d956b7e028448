from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.services.tiers import Tier

ApplicationStatus = Literal["applied", "interviewing", "offered", "rejected", "accepted", "withdrawn"]


class EmailLimit(BaseModel):
    daily_limit: int
    daily_sent: int
    remaining: int


class ProfileResponse(BaseModel):
    id: str
    email: str
    name: str | None = None
    subscription_tier: Tier
    subscription_expires_at: datetime | None = None
    gmail_connected: bool
    total_emails_sent: int = 0
    successful_emails: int = 0
    email_limit: EmailLimit


class ProfileCreateRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    name: str | None = Field(default=None, max_length=200)
    subscription_tier: Tier = "FREE"


class ProfileCreateResponse(BaseModel):
    id: str
    email: str
    access_token: str


class ApplicationCreateRequest(BaseModel):
    company: str = Field(min_length=1, max_length=200)
    position: str = Field(min_length=1, max_length=200)
    status: ApplicationStatus = "applied"
    applied_date: date | None = None
    notes: str | None = Field(default=None, max_length=10000)
    recruiter_id: str | None = None


class ApplicationUpdateRequest(BaseModel):
    company: str | None = Field(default=None, min_length=1, max_length=200)
    position: str | None = Field(default=None, min_length=1, max_length=200)
    status: ApplicationStatus | None = None
    applied_date: date | None = None
    notes: str | None = Field(default=None, max_length=10000)
    recruiter_id: str | None = None


class ApplicationResponse(BaseModel):
    id: str
    company: str
    position: str
    status: ApplicationStatus
    applied_date: date | None = None
    notes: str | None = None
    recruiter_id: str | None = None
    created_at: datetime
    updated_at: datetime


class EmailTemplateCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    subject: str = Field(min_length=1, max_length=500)
    body: str = Field(min_length=1, max_length=100000)
    category: str | None = Field(default=None, max_length=80)


class EmailTemplateResponse(BaseModel):
    id: str
    name: str
    subject: str
    body: str
    category: str | None = None
    created_at: datetime


class NotificationResponse(BaseModel):
    id: str
    title: str
    message: str
    type: str
    metadata: dict[str, Any] | None = None
    is_read: bool
    created_at: datetime
