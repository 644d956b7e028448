from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.parsing.models import HeaderOverrides, ParsedResume

PaymentStatus = Literal["pending", "completed"]


class AnalysisCreateRequest(BaseModel):
    resume_text: str = Field(min_length=1, max_length=120000)
    job_description: str | None = Field(default=None, max_length=60000)


class AnalysisResponse(BaseModel):
    id: str
    payment_status: PaymentStatus
    resume_text: str
    job_description: str | None = None
    ats_score: int | None = None
    keyword_match_score: int | None = None
    analysis_result: dict[str, Any] | None = None
    analysis_data: dict[str, Any] | None = None
    missing_keywords: list[Any] | None = None
    matched_keywords: list[Any] | None = None
    created_at: datetime
    updated_at: datetime | None = None


class AnalyzeRequest(BaseModel):
    resume_text: str | None = None
    job_description: str | None = None
    analysis_id: str | None = None


class AnalyzeResponse(BaseModel):
    success: bool = True
    analysis: AnalysisResponse


class OptimizeSuggestion(BaseModel):
    category: str
    priority: str = "medium"
    suggestion: str
    action: str = ""
    keyword: str | None = None
    where_to_add: str | None = None


class OptimizeRequest(BaseModel):
    original_resume_text: str = ""
    suggestions: list[OptimizeSuggestion] = Field(default_factory=list)
    job_description: str | None = None
    analysis_id: str


class OptimizeResponse(BaseModel):
    success: bool
    optimized_resume_text: str
    applied_suggestions_count: int


class ParseRequest(BaseModel):
    resume_text: str = Field(max_length=120000)
    overrides: HeaderOverrides | None = None


class ParseResponse(BaseModel):
    parsed: ParsedResume


class TemplateInfo(BaseModel):
    id: str
    name: str
    style: str
    accent_color: str
    description: str
    has_photo: bool


class RenderTemplateRequest(BaseModel):
    resume_text: str = Field(min_length=1, max_length=120000)
    overrides: HeaderOverrides | None = None
    profile_photo_url: str | None = Field(default=None, max_length=2000)
    download: bool = False
