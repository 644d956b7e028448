from __future__ import annotations

import sqlite3

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.security import require_admin
from app.db import store
from app.schemas.account import ProfileCreateRequest, ProfileCreateResponse
from app.schemas.directory import RecruiterImportRequest, RecruiterImportResponse
from app.schemas.payments import PlanCreateRequest, PlanResponse
from app.services import maintenance_service

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/admin/profiles", response_model=ProfileCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(payload: ProfileCreateRequest):
    try:
        return store.create_profile(email=payload.email, name=payload.name, subscription_tier=payload.subscription_tier)
    except sqlite3.IntegrityError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Profile already exists") from exc


@router.post("/admin/recruiters/import", response_model=RecruiterImportResponse)
async def import_recruiters(payload: RecruiterImportRequest):
    created = updated = 0
    for item in payload.recruiters:
        _, is_new = store.upsert_recruiter(**item.model_dump())
        if is_new:
            created += 1
        else:
            updated += 1
    return RecruiterImportResponse(created=created, updated=updated)


@router.post("/admin/plans", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(payload: PlanCreateRequest):
    return store.create_plan(**payload.model_dump())


@router.post("/admin/maintenance/cooldowns")
async def run_cooldown_cleanup():
    return maintenance_service.cleanup_cooldowns()


@router.post("/admin/maintenance/subscriptions")
async def run_subscription_expiry():
    return maintenance_service.check_subscription_expiry()
