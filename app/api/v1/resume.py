from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import HTMLResponse

from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.core.security import require_user
from app.db import store
from app.parsing.parse import parse_bytes
from app.parsing.resume_text import parse_resume_content
from app.rendering.resume_templates import (
    TEMPLATES,
    UnknownTemplateError,
    generate_template_html,
    get_template,
    template_filename,
)
from app.schemas.resume import (
    AnalysisCreateRequest,
    AnalysisResponse,
    AnalyzeRequest,
    AnalyzeResponse,
    OptimizeRequest,
    OptimizeResponse,
    ParseRequest,
    ParseResponse,
    RenderTemplateRequest,
    TemplateInfo,
)
from app.services import ats_service
from app.services.errors import ServiceError

router = APIRouter()


def _raise_service_error(exc: ServiceError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post("/resume/analyses", response_model=AnalysisResponse, status_code=status.HTTP_201_CREATED)
async def create_analysis(payload: AnalysisCreateRequest, profile: dict[str, Any] = Depends(require_user)):
    try:
        return ats_service.create_analysis(profile, payload.resume_text, payload.job_description)
    except ServiceError as exc:
        _raise_service_error(exc)


@router.post("/resume/analyses/upload", response_model=AnalysisResponse, status_code=status.HTTP_201_CREATED)
async def upload_analysis(
    file: UploadFile = File(...),
    job_description: str | None = Form(default=None),
    profile: dict[str, Any] = Depends(require_user),
):
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(1024 * 64)
        if not chunk:
            break
        total += len(chunk)
        if total > settings.max_upload_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large. Maximum size is {settings.max_upload_bytes // (1024 * 1024)}MB.",
            )
        chunks.append(chunk)
    content = b"".join(chunks)
    try:
        doc = parse_bytes(content, file.filename or "resume.txt")
    except NotImplementedError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if not doc.text.strip():
        detail = doc.parsing_warnings[0] if doc.parsing_warnings else "Could not extract text from the file."
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
    try:
        return ats_service.create_analysis(profile, doc.text, job_description)
    except ServiceError as exc:
        _raise_service_error(exc)


@router.get("/resume/analyses", response_model=list[AnalysisResponse])
async def list_analyses(profile: dict[str, Any] = Depends(require_user)):
    return store.list_analyses(profile["id"])


@router.get("/resume/analyses/{analysis_id}", response_model=AnalysisResponse)
async def get_analysis(analysis_id: str, profile: dict[str, Any] = Depends(require_user)):
    analysis = store.get_analysis(analysis_id, profile["id"])
    if not analysis:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Analysis not found")
    return analysis


@router.post("/resume/analyze", response_model=AnalyzeResponse)
@rate_limit("10/minute")
def analyze_resume(request: Request, payload: AnalyzeRequest, profile: dict[str, Any] = Depends(require_user)):
    _ = request
    try:
        analysis = ats_service.analyze_resume_ats(
            profile,
            resume_text=payload.resume_text,
            analysis_id=payload.analysis_id,
            job_description=payload.job_description,
        )
    except ServiceError as exc:
        _raise_service_error(exc)
    return AnalyzeResponse(success=True, analysis=analysis)


@router.post("/resume/optimize", response_model=OptimizeResponse)
@rate_limit("10/minute")
def optimize_resume(request: Request, payload: OptimizeRequest, profile: dict[str, Any] = Depends(require_user)):
    _ = request
    try:
        return ats_service.optimize_resume(profile, payload)
    except ServiceError as exc:
        _raise_service_error(exc)


@router.post("/resume/parse", response_model=ParseResponse)
async def parse_resume(payload: ParseRequest, profile: dict[str, Any] = Depends(require_user)):
    _ = profile
    return ParseResponse(parsed=parse_resume_content(payload.resume_text, payload.overrides))


@router.get("/resume/templates", response_model=list[TemplateInfo])
async def list_templates():
    return [template.to_dict() for template in TEMPLATES]


@router.post("/resume/templates/{template_id}/render", response_class=HTMLResponse)
async def render_template(
    template_id: str,
    payload: RenderTemplateRequest,
    profile: dict[str, Any] = Depends(require_user),
):
    _ = profile
    try:
        template = get_template(template_id)
        document = generate_template_html(
            template_id,
            payload.resume_text,
            overrides=payload.overrides,
            profile_photo_url=payload.profile_photo_url,
        )
    except UnknownTemplateError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown template '{template_id}'") from exc

    headers = {}
    if payload.download:
        headers["Content-Disposition"] = f'attachment; filename="{template_filename(template)}"'
    return HTMLResponse(content=document, headers=headers)
