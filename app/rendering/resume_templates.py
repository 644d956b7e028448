from __future__ import annotations

import html
import re
from dataclasses import asdict, dataclass
from datetime import date
from string import Template
from urllib.parse import urlsplit

from app.parsing.models import HeaderOverrides, ParsedResume
from app.parsing.resume_text import parse_resume_content


_LINKEDIN_PATH_RE = re.compile(r"(?:www\.)?linkedin\.com/in/[\w-]+", re.IGNORECASE)


@dataclass(frozen=True)
class ResumeTemplate:
    id: str
    name: str
    style: str
    accent_color: str
    description: str
    has_photo: bool

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


TEMPLATES: tuple[ResumeTemplate, ...] = (
    ResumeTemplate(
        id="blue-sidebar",
        name="Blue Sidebar Professional",
        style="Two-column with blue sidebar",
        accent_color="#4A90E2",
        description="Classic professional layout with light blue sidebar and photo",
        has_photo=True,
    ),
    ResumeTemplate(
        id="purple-sidebar",
        name="Purple Sidebar Elegant",
        style="Two-column with purple sidebar",
        accent_color="#9B59B6",
        description="Elegant design with purple sidebar and modern typography",
        has_photo=True,
    ),
    ResumeTemplate(
        id="green-sidebar",
        name="Green Sidebar Modern",
        style="Two-column with green sidebar",
        accent_color="#27AE60",
        description="Modern layout with green accent and clean design",
        has_photo=True,
    ),
    ResumeTemplate(
        id="minimal-no-photo",
        name="Minimal Clean",
        style="Two-column minimal design",
        accent_color="#34495E",
        description="Clean minimal design without photo, perfect for ATS",
        has_photo=False,
    ),
    ResumeTemplate(
        id="orange-sidebar",
        name="Orange Sidebar Creative",
        style="Two-column with orange sidebar",
        accent_color="#E67E22",
        description="Creative design with warm orange tones",
        has_photo=True,
    ),
    ResumeTemplate(
        id="teal-sidebar",
        name="Teal Sidebar Contemporary",
        style="Two-column with teal sidebar",
        accent_color="#16A085",
        description="Contemporary design with teal accent color",
        has_photo=True,
    ),
)

_TEMPLATES_BY_ID = {template.id: template for template in TEMPLATES}

_STYLE = Template(
    """
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body {
      font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
      line-height: 1.6;
      color: #333;
      background: #f5f5f5;
      display: flex;
      justify-content: center;
      padding: 20px;
    }
    .resume-container {
      max-width: 1000px;
      width: 100%;
      background: #fff;
      box-shadow: 0 0 20px rgba(0,0,0,0.1);
      display: flex;
      min-height: 800px;
    }
    .sidebar {
      width: 280px;
      background: ${accent};
      color: #fff;
      padding: 30px 20px;
      display: flex;
      flex-direction: column;
    }
    .main-content { flex: 1; padding: 30px 40px; background: #fff; }
    .photo-container { width: 100%; margin-bottom: 25px; text-align: center; }
    .profile-photo {
      width: 150px;
      height: 150px;
      border-radius: 50%;
      object-fit: cover;
      border: 4px solid rgba(255,255,255,0.3);
      box-shadow: 0 4px 10px rgba(0,0,0,0.2);
    }
    .name-title { margin-bottom: 20px; }
    .name { font-size: 28px; font-weight: 700; color: #fff; margin-bottom: 5px; text-align: center; }
    .professional-title { font-size: 16px; color: rgba(255,255,255,0.9); text-align: center; font-weight: 400; }
    .sidebar-section { margin-bottom: 25px; }
    .sidebar-title {
      font-size: 18px;
      font-weight: 600;
      color: #fff;
      margin-bottom: 12px;
      text-transform: uppercase;
      letter-spacing: 1px;
      border-bottom: 2px solid rgba(255,255,255,0.3);
      padding-bottom: 8px;
    }
    .sidebar-content { font-size: 14px; color: rgba(255,255,255,0.95); line-height: 1.8; }
    .sidebar-item { margin-bottom: 8px; }
    .sidebar-item strong { display: block; margin-bottom: 3px; color: #fff; }
    .sidebar-item a { color: rgba(255,255,255,0.9); text-decoration: underline; }
    .skills-list { display: flex; flex-wrap: wrap; gap: 8px; }
    .skill-tag {
      background: rgba(255,255,255,0.2);
      color: #fff;
      padding: 6px 12px;
      border-radius: 4px;
      font-size: 13px;
      border: 1px solid rgba(255,255,255,0.3);
    }
    .main-header { margin-bottom: 30px; padding-bottom: 20px; border-bottom: 2px solid ${accent}; }
    .main-name { font-size: 36px; font-weight: 700; color: ${accent}; margin-bottom: 5px; }
    .main-title { font-size: 18px; color: #666; font-weight: 400; }
    .section { margin-bottom: 30px; }
    .section-title {
      font-size: 20px;
      font-weight: 600;
      color: ${accent};
      margin-bottom: 15px;
      text-transform: uppercase;
      letter-spacing: 1px;
      border-bottom: 2px solid ${accent};
      padding-bottom: 5px;
    }
    .summary-text { font-size: 15px; line-height: 1.8; color: #555; text-align: justify; }
    .experience-item, .education-item, .project-item {
      margin-bottom: 20px;
      padding-bottom: 15px;
      border-bottom: 1px solid #eee;
    }
    .experience-item:last-child, .education-item:last-child, .project-item:last-child { border-bottom: none; }
    .job-header { display: flex; justify-content: space-between; align-items: start; margin-bottom: 8px; }
    .job-title { font-size: 18px; font-weight: 600; color: #222; }
    .company { font-size: 16px; color: ${accent}; font-weight: 500; margin-top: 2px; }
    .dates { font-size: 14px; color: #888; white-space: nowrap; }
    .description { margin-top: 10px; }
    .description ul { list-style: none; padding-left: 0; }
    .description li { margin-bottom: 6px; padding-left: 20px; position: relative; font-size: 14px; color: #555; }
    .description li:before { content: "\\25B8"; position: absolute; left: 0; color: ${accent}; font-weight: bold; }
    .project-name { font-size: 18px; font-weight: 600; color: #222; margin-bottom: 5px; }
    .project-duration { font-size: 13px; color: #888; margin-bottom: 8px; }
    .project-description { font-size: 14px; color: #555; line-height: 1.7; }
    @media print {
      body { padding: 0; background: #fff; }
      .resume-container { box-shadow: none; }
      .sidebar { page-break-inside: avoid; }
    }
"""
)


class UnknownTemplateError(KeyError):
    pass


def get_template(template_id: str) -> ResumeTemplate:
    try:
        return _TEMPLATES_BY_ID[template_id]
    except KeyError as exc:
        raise UnknownTemplateError(template_id) from exc


def escape_html(value: str | None) -> str:
    if not value:
        return ""
    return html.escape(str(value), quote=True)


def template_filename(template: ResumeTemplate, on: date | None = None) -> str:
    return f"resume_{template.id}_{(on or date.today()).isoformat()}.html"


def _sidebar_item(label: str, value: str) -> str:
    if not value:
        return ""
    return f'<div class="sidebar-item"><strong>{label}:</strong> {escape_html(value)}</div>'


def _profile_href(value: str) -> str | None:
    """Only http(s) URLs and bare linkedin.com paths become links."""
    candidate = value.strip()
    parts = urlsplit(candidate)
    if parts.scheme.lower() in {"http", "https"} and parts.netloc:
        return candidate
    match = _LINKEDIN_PATH_RE.search(candidate)
    if match and not parts.scheme:
        return f"https://{match.group(0)}"
    return None


def _personal_info(parsed: ParsedResume) -> str:
    header = parsed.header
    items = [
        _sidebar_item("Email", header.email),
        _sidebar_item("Mobile", header.phone),
        _sidebar_item("Total work experience", header.work_experience),
    ]
    if header.linkedin:
        text = escape_html(header.linkedin)
        href = _profile_href(header.linkedin)
        value = f'<a href="{escape_html(href)}">{text}</a>' if href else text
        items.append(f'<div class="sidebar-item"><strong>Social Link:</strong> {value}</div>')
    if header.location:
        city, _, country = header.location.partition(",")
        items.append(_sidebar_item("City", city.strip()))
        items.append(f'<div class="sidebar-item"><strong>Country:</strong> {escape_html(country.strip())}</div>')
    return "".join(items)


def _sidebar_list(title: str, values: list[str], item_tag: str, item_class: str, container_class: str) -> str:
    if not values:
        return ""
    items = "".join(f'<{item_tag} class="{item_class}">{escape_html(value)}</{item_tag}>' for value in values)
    return (
        '<div class="sidebar-section">'
        f'<div class="sidebar-title">{title}</div>'
        f'<div class="{container_class}">{items}</div>'
        "</div>"
    )


def _experience_section(parsed: ParsedResume) -> str:
    if not parsed.experience:
        return ""
    items = []
    for entry in parsed.experience:
        company = f'<div class="company">{escape_html(entry.company)}</div>' if entry.company else ""
        dates = f'<div class="dates">{escape_html(entry.dates)}</div>' if entry.dates else ""
        description = ""
        if entry.description:
            bullets = "".join(f"<li>{escape_html(item)}</li>" for item in entry.description)
            description = f'<div class="description"><ul>{bullets}</ul></div>'
        items.append(
            '<div class="experience-item"><div class="job-header">'
            f'<div><div class="job-title">{escape_html(entry.title)}</div>{company}</div>{dates}'
            f"</div>{description}</div>"
        )
    return f'<div class="section"><div class="section-title">Work Experience</div>{"".join(items)}</div>'


def _education_section(parsed: ParsedResume) -> str:
    if not parsed.education:
        return ""
    items = []
    for entry in parsed.education:
        institution = f'<div class="company">{escape_html(entry.institution)}</div>' if entry.institution else ""
        dates = f'<div class="dates">{escape_html(entry.dates)}</div>' if entry.dates else ""
        items.append(
            '<div class="education-item"><div class="job-header">'
            f'<div><div class="job-title">{escape_html(entry.degree)}</div>{institution}</div>{dates}'
            "</div></div>"
        )
    return f'<div class="section"><div class="section-title">Education</div>{"".join(items)}</div>'


def _projects_section(parsed: ParsedResume) -> str:
    if not parsed.projects:
        return ""
    items = []
    for project in parsed.projects:
        duration = (
            f'<div class="project-duration">Duration: {escape_html(project.duration)}</div>' if project.duration else ""
        )
        items.append(
            '<div class="project-item">'
            f'<div class="project-name">{escape_html(project.name)}</div>{duration}'
            f'<div class="project-description">{escape_html(project.description)}</div>'
            "</div>"
        )
    return f'<div class="section"><div class="section-title">Projects</div>{"".join(items)}</div>'


def render_parsed_resume(
    template: ResumeTemplate,
    parsed: ParsedResume,
    profile_photo_url: str | None = None,
) -> str:
    name = escape_html(parsed.header.name or "Your Name")
    title = parsed.professional_title

    photo_html = ""
    if template.has_photo and profile_photo_url:
        photo_html = (
            '<div class="photo-container">'
            f'<img src="{escape_html(profile_photo_url)}" alt="{escape_html(parsed.header.name)}" class="profile-photo" />'
            "</div>"
        )

    sidebar_title = f'<div class="professional-title">{escape_html(title)}</div>' if title else ""
    sidebar = (
        f"{photo_html}"
        '<div class="name-title">'
        f'<div class="name">{name}</div>{sidebar_title}'
        "</div>"
        '<div class="sidebar-section"><div class="sidebar-title">Personal Information</div>'
        f'<div class="sidebar-content">{_personal_info(parsed)}</div></div>'
        + _sidebar_list("Key Skills", parsed.skills, "span", "skill-tag", "skills-list")
        + _sidebar_list("Languages", parsed.languages, "div", "sidebar-item", "sidebar-content")
        + _sidebar_list("Courses &amp; Certifications", parsed.certifications, "div", "sidebar-item", "sidebar-content")
    )

    main_header = ""
    if not photo_html:
        main_title = f'<div class="main-title">{escape_html(title)}</div>' if title else ""
        main_header = f'<div class="main-header"><div class="main-name">{name}</div>{main_title}</div>'

    summary = ""
    if parsed.summary:
        summary = (
            '<div class="section"><div class="section-title">Profile Summary</div>'
            f'<div class="summary-text">{escape_html(parsed.summary)}</div></div>'
        )

    main = (
        f"{main_header}{summary}"
        f"{_experience_section(parsed)}{_education_section(parsed)}{_projects_section(parsed)}"
    )

    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '  <meta charset="UTF-8">\n'
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"  <title>Resume - {name}</title>\n"
        f"  <style>{_STYLE.substitute(accent=template.accent_color)}  </style>\n"
        "</head>\n"
        "<body>\n"
        '  <div class="resume-container">\n'
        f'    <div class="sidebar">{sidebar}</div>\n'
        f'    <div class="main-content">{main}</div>\n'
        "  </div>\n"
        "</body>\n"
        "</html>"
    )


def generate_template_html(
    template_id: str,
    resume_text: str,
    overrides: HeaderOverrides | None = None,
    profile_photo_url: str | None = None,
) -> str:
    template = get_template(template_id)
    parsed = parse_resume_content(resume_text, overrides)
    return render_parsed_resume(template, parsed, profile_photo_url)
