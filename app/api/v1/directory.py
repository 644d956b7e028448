from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from app.core.security import require_user
from app.schemas.directory import RecruiterResponse
from app.services.directory_service import list_domains, list_recruiters_for

router = APIRouter()


@router.get("/recruiters", response_model=list[RecruiterResponse])
async def list_recruiters(
    search: str = Query(default="", max_length=200),
    domain: str | None = Query(default=None, max_length=100),
    tier: str | None = Query(default=None, max_length=40),
    profile: dict[str, Any] = Depends(require_user),
):
    return list_recruiters_for(profile, search=search, domain=domain, tier=tier)


@router.get("/recruiters/domains", response_model=list[str])
async def recruiter_domains(profile: dict[str, Any] = Depends(require_user)):
    _ = profile
    return list_domains()
