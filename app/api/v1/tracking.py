from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import RedirectResponse, Response

from app.services.errors import ServiceError
from app.services.tracking_service import NO_CACHE_HEADERS, PIXEL_GIF, record_click, record_open

router = APIRouter()


@router.get("/track/open", include_in_schema=False)
async def track_open(tracking_id: str | None = Query(default=None, alias="id")):
    record_open(tracking_id)
    return Response(content=PIXEL_GIF, media_type="image/gif", headers=NO_CACHE_HEADERS)


@router.get("/track/click", include_in_schema=False)
async def track_click(
    tracking_id: str | None = Query(default=None, alias="id"),
    url: str | None = Query(default=None),
):
    try:
        target = record_click(tracking_id, url)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return RedirectResponse(url=target, status_code=302)
