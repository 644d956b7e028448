from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.services.tiers import Tier


class RecruiterCooldown(BaseModel):
    blocked_until: datetime
    days_remaining: int


class RecruiterResponse(BaseModel):
    id: str
    name: str
    email: str
    company: str | None = None
    domain: str | None = None
    subdomain: str | None = None
    tier: Tier
    quality_score: int | None = None
    locked: bool = False
    cooldown: RecruiterCooldown | None = None


class RecruiterImportItem(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=320)
    company: str | None = Field(default=None, max_length=200)
    domain: str | None = Field(default=None, max_length=100)
    subdomain: str | None = Field(default=None, max_length=100)
    tier: str | None = Field(default="FREE", max_length=40)
    quality_score: int | None = Field(default=None, ge=0, le=100)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value:
            raise ValueError("Invalid email address")
        return value


class RecruiterImportRequest(BaseModel):
    recruiters: list[RecruiterImportItem] = Field(min_length=1, max_length=5000)


class RecruiterImportResponse(BaseModel):
    created: int
    updated: int
