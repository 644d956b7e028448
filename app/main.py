import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from app.api.v1.health import router as health_router
from app.api.v1.account import router as account_router
from app.api.v1.directory import router as directory_router
from app.api.v1.outreach import router as outreach_router
from app.api.v1.conversations import router as conversations_router
from app.api.v1.tracking import router as tracking_router
from app.api.v1.payments import router as payments_router
from app.api.v1.resume import router as resume_router
from app.api.v1.admin import router as admin_router
from app.core.rate_limit import limiter
from app.core.config import settings
from dotenv import load_dotenv
from app.core.lifespan import lifespan

load_dotenv()
logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

app = FastAPI(title="Job Seeker Outreach API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allowed_origins),
    allow_origin_regex=(settings.cors_allow_origin_regex or "").strip() or None,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(account_router, prefix="/v1", tags=["Account"])
app.include_router(directory_router, prefix="/v1", tags=["Recruiters"])
app.include_router(outreach_router, prefix="/v1", tags=["Outreach"])
app.include_router(conversations_router, prefix="/v1", tags=["Conversations"])
app.include_router(tracking_router, prefix="/v1", tags=["Tracking"])
app.include_router(payments_router, prefix="/v1", tags=["Payments"])
app.include_router(resume_router, prefix="/v1", tags=["Resume"])
app.include_router(admin_router, prefix="/v1", tags=["Admin"])
