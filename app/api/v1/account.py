from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.security import require_user
from app.db import store
from app.schemas.account import (
    ApplicationCreateRequest,
    ApplicationResponse,
    ApplicationStatus,
    ApplicationUpdateRequest,
    EmailTemplateCreateRequest,
    EmailTemplateResponse,
    NotificationResponse,
    ProfileResponse,
)
from app.services.outreach_service import email_limit
from app.services.tiers import normalize_tier

router = APIRouter()


def _iso_date(value):
    return value.isoformat() if value is not None else None


@router.get("/me", response_model=ProfileResponse)
async def me(profile: dict[str, Any] = Depends(require_user)):
    return {
        **profile,
        "subscription_tier": normalize_tier(profile.get("subscription_tier")),
        "gmail_connected": bool(profile.get("google_refresh_token")),
        "email_limit": email_limit(profile),
    }


@router.get("/applications", response_model=list[ApplicationResponse])
async def list_applications(
    status_filter: ApplicationStatus | None = Query(default=None, alias="status"),
    profile: dict[str, Any] = Depends(require_user),
):
    return store.list_applications(profile["id"], status=status_filter)


@router.post("/applications", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def create_application(payload: ApplicationCreateRequest, profile: dict[str, Any] = Depends(require_user)):
    fields = payload.model_dump()
    fields["applied_date"] = _iso_date(payload.applied_date)
    return store.create_application(user_id=profile["id"], **fields)


@router.patch("/applications/{application_id}", response_model=ApplicationResponse)
async def update_application(
    application_id: str,
    payload: ApplicationUpdateRequest,
    profile: dict[str, Any] = Depends(require_user),
):
    if not store.get_application(application_id, profile["id"]):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    fields = payload.model_dump(exclude_unset=True)
    if "applied_date" in fields:
        fields["applied_date"] = _iso_date(payload.applied_date)
    store.update_application(application_id, **fields)
    return store.get_application(application_id, profile["id"])


@router.delete("/applications/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_application(application_id: str, profile: dict[str, Any] = Depends(require_user)):
    if not store.delete_application(application_id, profile["id"]):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")


@router.get("/email-templates", response_model=list[EmailTemplateResponse])
async def list_email_templates(profile: dict[str, Any] = Depends(require_user)):
    return store.list_email_templates(profile["id"])


@router.post("/email-templates", response_model=EmailTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_email_template(payload: EmailTemplateCreateRequest, profile: dict[str, Any] = Depends(require_user)):
    return store.create_email_template(user_id=profile["id"], **payload.model_dump())


@router.delete("/email-templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_email_template(template_id: str, profile: dict[str, Any] = Depends(require_user)):
    if not store.delete_email_template(template_id, profile["id"]):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")


@router.get("/notifications", response_model=list[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(default=False),
    profile: dict[str, Any] = Depends(require_user),
):
    return store.list_notifications(profile["id"], unread_only=unread_only)


@router.post("/notifications/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notification_read(notification_id: str, profile: dict[str, Any] = Depends(require_user)):
    if not store.mark_notification_read(notification_id, profile["id"]):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
