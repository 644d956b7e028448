from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.core.rate_limit import rate_limit
from app.core.security import require_user
from app.schemas.conversations import (
    ConversationDetail,
    ConversationMessage,
    ConversationThread,
    DraftEmailRequest,
    DraftEmailResponse,
    FollowUpResponse,
    LogReplyRequest,
    ThreadStatus,
    ThreadStatusUpdate,
)
from app.services import conversation_service
from app.services.errors import ServiceError

router = APIRouter()


def _raise_service_error(exc: ServiceError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.get("/conversations", response_model=list[ConversationThread])
async def list_conversations(
    status_filter: ThreadStatus | None = Query(default=None, alias="status"),
    profile: dict[str, Any] = Depends(require_user),
):
    try:
        return conversation_service.list_threads(profile, status_filter)
    except ServiceError as exc:
        _raise_service_error(exc)


@router.get("/conversations/{thread_id}", response_model=ConversationDetail)
async def get_conversation(thread_id: str, profile: dict[str, Any] = Depends(require_user)):
    try:
        return conversation_service.get_thread_detail(profile, thread_id)
    except ServiceError as exc:
        _raise_service_error(exc)


@router.post(
    "/conversations/{thread_id}/messages",
    response_model=ConversationMessage,
    status_code=status.HTTP_201_CREATED,
)
async def log_reply(thread_id: str, payload: LogReplyRequest, profile: dict[str, Any] = Depends(require_user)):
    try:
        return conversation_service.log_reply(profile, thread_id, subject=payload.subject, body=payload.body)
    except ServiceError as exc:
        _raise_service_error(exc)


@router.patch("/conversations/{thread_id}", response_model=ConversationDetail)
async def update_conversation(
    thread_id: str,
    payload: ThreadStatusUpdate,
    profile: dict[str, Any] = Depends(require_user),
):
    try:
        return conversation_service.update_status(profile, thread_id, payload.status)
    except ServiceError as exc:
        _raise_service_error(exc)


@router.post("/conversations/{thread_id}/follow-up", response_model=FollowUpResponse)
@rate_limit("10/minute")
def follow_up(request: Request, thread_id: str, profile: dict[str, Any] = Depends(require_user)):
    _ = request
    try:
        return conversation_service.suggest_follow_up(profile, thread_id)
    except ServiceError as exc:
        _raise_service_error(exc)


@router.post("/emails/draft", response_model=DraftEmailResponse)
@rate_limit("10/minute")
def draft_email(request: Request, payload: DraftEmailRequest, profile: dict[str, Any] = Depends(require_user)):
    _ = request
    try:
        return conversation_service.draft_email(
            profile,
            domain=payload.domain,
            recruiter_name=payload.recruiter_name,
            company_name=payload.company_name,
            job_title=payload.job_title,
            professional_title=payload.professional_title,
            bio=payload.bio,
        )
    except ServiceError as exc:
        _raise_service_error(exc)
