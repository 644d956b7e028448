from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class ParsedDoc(BaseModel):
    """Plain text pulled out of an uploaded resume file."""

    source_type: str
    filename: str | None = None
    text: str
    parsing_warnings: list[str] = Field(default_factory=list)

    @field_validator("source_type")
    @classmethod
    def _validate_source_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"pdf", "docx", "txt"}:
            raise ValueError("source_type must be one of: pdf, docx, txt")
        return normalized


class ResumeHeader(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    linkedin: str = ""
    work_experience: str = ""


class ExperienceEntry(BaseModel):
    title: str
    company: str = ""
    dates: str = ""
    description: list[str] = Field(default_factory=list)


class EducationEntry(BaseModel):
    degree: str
    institution: str = ""
    dates: str = ""


class ProjectEntry(BaseModel):
    name: str
    description: str = ""
    duration: str = ""


class ParsedResume(BaseModel):
    header: ResumeHeader = Field(default_factory=ResumeHeader)
    professional_title: str = ""
    summary: str = ""
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    projects: list[ProjectEntry] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)


class HeaderOverrides(BaseModel):
    """Profile values that take precedence over anything found in the text."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    linkedin: str | None = None
    professional_title: str | None = None

    def as_header(self) -> dict[str, Any]:
        return {
            "name": self.name or "",
            "email": self.email or "",
            "phone": self.phone or "",
            "location": self.location or "",
            "linkedin": self.linkedin or "",
        }
