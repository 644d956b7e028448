from __future__ import annotations

import re

from .models import (
    EducationEntry,
    ExperienceEntry,
    HeaderOverrides,
    ParsedResume,
    ProjectEntry,
    ResumeHeader,
)

_EMAIL_RE = re.compile(r"[\w.-]+@[\w.-]+\.\w+")
_PHONE_RE = re.compile(r"(\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
_LINKEDIN_RE = re.compile(r"linkedin\.com/in/[\w-]+", re.IGNORECASE)
_LOCATION_RE = re.compile(r"\b[A-Z][a-z]+,\s*[A-Z]{2}\b")
_WORK_EXPERIENCE_RE = re.compile(r"(\d+)\s*(?:years?|yrs?)\s*(\d+)?\s*(?:months?|mos?)?", re.IGNORECASE)

# Capitalised line with no bullet, dash or digit: a job title, degree or project name.
_TITLE_RE = re.compile(r"^[A-Z][^•\-\d]+$")
_DATES_RE = re.compile(r"\d{4}|\bpresent\b|\bcurrent\b", re.IGNORECASE)
_LEADING_YEAR_RE = re.compile(r"^\d{4}")
_DATE_TOKEN_RE = re.compile(
    r"\d{1,4}|\b(?:present|current|to|jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?"
    r"|aug(?:ust)?|sept?(?:ember)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\b",
    re.IGNORECASE,
)
_BULLET_RE = re.compile(r"^(?:[•\-\*]|\d+\.)\s*")
_DURATION_RE = re.compile(r"(\d+)\s*(?:days?|months?|years?)", re.IGNORECASE)
_SKILL_SPLIT_RE = re.compile(r"[,•\-\*|]")
_LIST_SPLIT_RE = re.compile(r"[,•\-\*]")

_HEADER_SCAN_LINES = 5

SECTION_HEADERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("summary", ("PROFESSIONAL SUMMARY", "PROFILE SUMMARY", "SUMMARY", "OBJECTIVE", "PROFILE")),
    (
        "experience",
        ("PROFESSIONAL EXPERIENCE", "WORK EXPERIENCE", "WORK HISTORY", "EXPERIENCE", "EMPLOYMENT"),
    ),
    ("education", ("ACADEMIC BACKGROUND", "ACADEMIC QUALIFICATIONS", "EDUCATION")),
    ("skills", ("TECHNICAL SKILLS", "CORE SKILLS", "KEY SKILLS", "SKILLS", "COMPETENCIES")),
    ("projects", ("PROJECT EXPERIENCE", "PROJECT WORK", "PROJECTS")),
    ("languages", ("LANGUAGES", "LANGUAGE")),
    ("certifications", ("CERTIFICATIONS", "CERTIFICATES", "COURSES")),
)

_SECTION_PATTERNS = tuple(
    (section, re.compile(r"^(?:" + "|".join(re.escape(name) for name in names) + r")", re.IGNORECASE))
    for section, names in SECTION_HEADERS
)


def _split_lines(text: str) -> list[str]:
    lines = [line.strip() for line in (text or "").split("\n")]
    return [line for line in lines if line]


def _split_items(line: str, pattern: re.Pattern[str]) -> list[str]:
    return [item.strip() for item in pattern.split(line) if item.strip()]


def detect_section(line: str) -> str | None:
    """Match a heading by prefix; a lowercase word after the keyword marks body text."""
    for section, pattern in _SECTION_PATTERNS:
        match = pattern.match(line)
        if not match:
            continue
        rest = line[match.end():]
        words = rest.split()
        if rest and not rest[0].isspace():
            # "EXPERIENCES": the glued suffix is part of the heading word.
            words = words[1:]
        if any(word[0].islower() for word in words):
            return None
        return section
    return None


def _is_date_only(line: str) -> bool:
    return bool(_DATES_RE.search(line)) and not _DATE_TOKEN_RE.sub("", line).strip(" -–—/.,|")


def _split_trailing_dates(line: str) -> tuple[str, str]:
    """Split "Acme Corp | 2019 - Present" into its name and dates parts."""
    name, sep, tail = line.rpartition("|")
    if sep and name.strip() and _DATES_RE.search(tail):
        return name.strip(), tail.strip()
    return line, ""


def _scan_header(lines: list[str], header: ResumeHeader) -> None:
    for raw_line in lines[:_HEADER_SCAN_LINES]:
        line = raw_line
        email_match = _EMAIL_RE.search(line)
        if email_match and not header.email:
            header.email = email_match.group(0)
            line = line.replace(email_match.group(0), "").strip()

        phone_match = _PHONE_RE.search(line)
        if phone_match and not header.phone:
            header.phone = phone_match.group(0)
            line = line.replace(phone_match.group(0), "").strip()

        if _LINKEDIN_RE.search(line) and not header.linkedin:
            header.linkedin = line

        if not header.name and not email_match and not phone_match and 2 < len(line) < 50:
            header.name = line

        if _LOCATION_RE.search(line) and not header.location:
            header.location = line

        if _WORK_EXPERIENCE_RE.search(line) and not header.work_experience:
            header.work_experience = line


def _is_title(line: str, max_len: int) -> bool:
    return bool(_TITLE_RE.match(line)) and len(line) < max_len


def parse_resume_content(text: str, overrides: HeaderOverrides | None = None) -> ParsedResume:
    """Split free-text resume content into a display structure.

    A single pass over the non-empty lines: header lines are scanned for
    contact details, known section headings switch the active section, and
    every other line is routed into that section's bucket.
    """
    overrides = overrides or HeaderOverrides()
    lines = _split_lines(text)
    parsed = ParsedResume(
        header=ResumeHeader(**overrides.as_header()),
        professional_title=overrides.professional_title or "",
    )

    if not parsed.header.name:
        _scan_header(lines, parsed.header)

    section = ""
    experience: ExperienceEntry | None = None
    education: EducationEntry | None = None
    project: ProjectEntry | None = None

    for line in lines:
        detected = detect_section(line)
        if detected:
            section = detected
            continue

        if section == "summary":
            parsed.summary = f"{parsed.summary} {line}" if parsed.summary else line

        elif section == "experience":
            if experience is None:
                if _is_title(line, 60):
                    experience = ExperienceEntry(title=line)
                continue
            if _BULLET_RE.match(line):
                experience.description.append(_BULLET_RE.sub("", line, count=1))
            elif (
                not experience.company
                and len(line) < 80
                and not _LEADING_YEAR_RE.match(line)
                and not _is_date_only(line)
            ):
                experience.company, dates = _split_trailing_dates(line)
                experience.dates = experience.dates or dates
            elif _DATES_RE.search(line) and not experience.dates:
                experience.dates = line
            elif (
                _is_title(line, 60)
                and experience.company
                and (experience.dates or experience.description)
            ):
                parsed.experience.append(experience)
                experience = ExperienceEntry(title=line)
            else:
                experience.description.append(line)

        elif section == "education":
            if education is None:
                if _is_title(line, 80):
                    education = EducationEntry(degree=line)
                continue
            if not education.institution and len(line) < 100 and not _is_date_only(line):
                education.institution, dates = _split_trailing_dates(line)
                education.dates = education.dates or dates
            elif _DATES_RE.search(line) and not education.dates:
                education.dates = line
            elif _is_title(line, 80):
                parsed.education.append(education)
                education = EducationEntry(degree=line)

        elif section == "skills":
            parsed.skills.extend(_split_items(line, _SKILL_SPLIT_RE))

        elif section == "projects":
            if _is_title(line, 80) and (project is None or project.description):
                if project is not None:
                    parsed.projects.append(project)
                project = ProjectEntry(name=line)
                continue
            if project is None:
                continue
            if _DURATION_RE.search(line) and not project.duration:
                project.duration = line
            else:
                project.description = f"{project.description} {line}" if project.description else line

        elif section == "languages":
            parsed.languages.extend(_split_items(line, _LIST_SPLIT_RE))

        elif section == "certifications":
            parsed.certifications.extend(_split_items(line, _LIST_SPLIT_RE))

    if experience is not None:
        parsed.experience.append(experience)
    if education is not None:
        parsed.education.append(education)
    if project is not None:
        parsed.projects.append(project)

    if not parsed.header.name and lines:
        parsed.header.name = lines[0]
    if not parsed.experience and not parsed.education and not parsed.summary:
        parsed.summary = " ".join(lines[1:5])

    return parsed
