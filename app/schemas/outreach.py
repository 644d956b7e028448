from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


def _single_line(value: str) -> str:
    if "\r" in value or "\n" in value:
        raise ValueError("Must not contain line breaks")
    return value


class SendEmailRequest(BaseModel):
    to: str = Field(min_length=3, max_length=320)
    subject: str = Field(min_length=1, max_length=500)
    body: str = Field(min_length=1, max_length=100000)

    @field_validator("to")
    @classmethod
    def _looks_like_email(cls, value: str) -> str:
        value = _single_line(value).strip()
        if "@" not in value or value.startswith("@") or value.endswith("@"):
            raise ValueError("Invalid email address")
        return value

    @field_validator("subject")
    @classmethod
    def _subject_single_line(cls, value: str) -> str:
        return _single_line(value)


class SendEmailResponse(BaseModel):
    success: bool
    message_id: str
    tracking_id: str


class BulkSendRequest(BaseModel):
    recruiter_ids: list[str] = Field(default_factory=list, max_length=1000)
    subject: str = Field(default="", max_length=500)
    body: str = Field(default="", max_length=100000)

    @field_validator("subject")
    @classmethod
    def _subject_single_line(cls, value: str) -> str:
        return _single_line(value)


class BulkSendResult(BaseModel):
    recruiter_id: str
    email: str | None = None
    status: str
    tracking_id: str | None = None
    error: str | None = None


class BulkSendResponse(BaseModel):
    sent: int
    failed: int
    skipped: int
    results: list[BulkSendResult] = Field(default_factory=list)


class GmailConnectRequest(BaseModel):
    code: str = Field(min_length=1, max_length=4000)
    redirect_uri: str = Field(min_length=1, max_length=2000)


class GmailConnectResponse(BaseModel):
    success: bool
    message: str


class CooldownResponse(BaseModel):
    recruiter_email: str
    blocked_until: datetime
    days_remaining: int
    email_count: int


class EmailHistoryItem(BaseModel):
    id: str
    recruiter_email: str
    subject: str | None = None
    tracking_id: str
    status: str
    sent_at: datetime
    opened_at: datetime | None = None
    open_count: int = 0
    clicked_at: datetime | None = None
    click_count: int = 0
