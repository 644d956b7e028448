from __future__ import annotations

import base64
import logging
from urllib.parse import urlparse

from app.db import store
from app.services.errors import ServiceError

logger = logging.getLogger(__name__)

PIXEL_GIF = base64.b64decode("R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7")

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Pragma": "no-cache",
    "Expires": "0",
}


def record_open(tracking_id: str | None) -> None:
    # Unknown ids still get the pixel.
    if not tracking_id:
        return
    try:
        if not store.record_email_event(tracking_id, "open"):
            logger.info("tracking_open_unknown id=%s", tracking_id)
    except Exception as exc:  # noqa: BLE001
        logger.warning("tracking_open_failed id=%s: %s", tracking_id, exc)


def record_click(tracking_id: str | None, url: str | None) -> str:
    if not url:
        raise ServiceError("Missing target url", status_code=400)
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ServiceError("Invalid target url", status_code=400)
    if tracking_id and not store.record_email_event(tracking_id, "click"):
        logger.info("tracking_click_unknown id=%s", tracking_id)
    return url
