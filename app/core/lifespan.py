import contextlib
from contextlib import asynccontextmanager
import asyncio
import logging

from app.core.config import settings
from app.db.store import init_db
from app.services.maintenance_service import run_all

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    init_db()
    if not settings.maintenance_enabled:
        yield
        return

    stop_event = asyncio.Event()

    async def periodic_maintenance() -> None:
        while not stop_event.is_set():
            try:
                counts = await asyncio.to_thread(run_all)
                if any(counts.values()):
                    logger.info("maintenance_run counts=%s", counts)
            except Exception as exc:  # pragma: no cover - next tick retries
                logger.warning("maintenance_run_failed: %s", exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=settings.maintenance_interval_s)
            except asyncio.TimeoutError:
                continue

    maintenance_task = asyncio.create_task(periodic_maintenance())
    yield
    stop_event.set()
    if not maintenance_task.done():
        maintenance_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await maintenance_task
