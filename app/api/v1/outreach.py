from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.core.rate_limit import rate_limit
from app.core.security import require_user
from app.db import store
from app.schemas.outreach import (
    BulkSendRequest,
    BulkSendResponse,
    CooldownResponse,
    EmailHistoryItem,
    GmailConnectRequest,
    GmailConnectResponse,
    SendEmailRequest,
    SendEmailResponse,
)
from app.services import outreach_service
from app.services.cooldowns import cooldown_info
from app.services.errors import ServiceError

router = APIRouter()


def _raise_service_error(exc: ServiceError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post("/emails/send", response_model=SendEmailResponse)
@rate_limit("30/minute")
def send_email(request: Request, payload: SendEmailRequest, profile: dict[str, Any] = Depends(require_user)):
    _ = request
    try:
        return outreach_service.send_email(profile["id"], to=payload.to, subject=payload.subject, body=payload.body)
    except ServiceError as exc:
        _raise_service_error(exc)


@router.post("/emails/bulk", response_model=BulkSendResponse)
@rate_limit("5/minute")
def send_bulk(request: Request, payload: BulkSendRequest, profile: dict[str, Any] = Depends(require_user)):
    _ = request
    try:
        return outreach_service.send_bulk(
            profile,
            recruiter_ids=payload.recruiter_ids,
            subject=payload.subject,
            body=payload.body,
        )
    except ServiceError as exc:
        _raise_service_error(exc)


@router.get("/emails/history", response_model=list[EmailHistoryItem])
async def email_history(
    limit: int = Query(default=50, ge=1, le=500),
    profile: dict[str, Any] = Depends(require_user),
):
    return store.list_email_history(profile["id"], limit=limit)


@router.get("/emails/cooldowns", response_model=list[CooldownResponse])
async def active_cooldowns(profile: dict[str, Any] = Depends(require_user)):
    now = store.utc_now()
    rows = []
    for cooldown in store.list_active_cooldowns(profile["id"], now.isoformat()):
        info = cooldown_info(cooldown, now)
        if info:
            rows.append(
                {
                    "recruiter_email": cooldown["recruiter_email"],
                    "email_count": cooldown["email_count"],
                    **info,
                }
            )
    return rows


@router.post("/gmail/connect", response_model=GmailConnectResponse)
def gmail_connect(payload: GmailConnectRequest, profile: dict[str, Any] = Depends(require_user)):
    try:
        return outreach_service.connect_gmail(profile, payload.code, payload.redirect_uri)
    except ServiceError as exc:
        _raise_service_error(exc)


@router.post("/gmail/disconnect", status_code=status.HTTP_204_NO_CONTENT)
async def gmail_disconnect(profile: dict[str, Any] = Depends(require_user)):
    outreach_service.disconnect_gmail(profile)
