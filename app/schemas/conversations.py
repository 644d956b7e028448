from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

ThreadStatus = Literal["awaiting_reply", "replied", "closed"]


class ConversationMessage(BaseModel):
    id: str
    sender_type: str
    subject: str
    body_preview: str | None = None
    body_full: str | None = None
    message_number: int
    status: str
    tracking_id: str | None = None
    sent_at: datetime
    opened_at: datetime | None = None
    clicked_at: datetime | None = None


class ConversationThread(BaseModel):
    id: str
    recruiter_email: str
    recruiter_name: str | None = None
    company_name: str | None = None
    subject_line: str | None = None
    status: str
    total_messages: int = 0
    user_messages_count: int = 0
    recruiter_messages_count: int = 0
    first_contact_at: datetime | None = None
    last_activity_at: datetime | None = None
    last_user_message_at: datetime | None = None
    last_recruiter_message_at: datetime | None = None


class ConversationDetail(ConversationThread):
    messages: list[ConversationMessage] = Field(default_factory=list)


class LogReplyRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=500)
    body: str = Field(min_length=1, max_length=100000)


class ThreadStatusUpdate(BaseModel):
    status: ThreadStatus


class DraftEmailRequest(BaseModel):
    domain: str = Field(min_length=1, max_length=200)
    recruiter_name: str | None = Field(default=None, max_length=200)
    company_name: str | None = Field(default=None, max_length=200)
    job_title: str | None = Field(default=None, max_length=200)
    professional_title: str | None = Field(default=None, max_length=200)
    bio: str | None = Field(default=None, max_length=2000)

    @field_validator("domain")
    @classmethod
    def _strip_domain(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Domain is required")
        return value


class DraftEmailResponse(BaseModel):
    subject: str
    body: str


class FollowUpResponse(BaseModel):
    subject: str
    body: str
    priority: Literal["low", "medium", "high"]
    reason: str
