# coachbook/main.py
from __future__ import annotations

# Load .env early so settings and os.getenv see it
from dotenv import load_dotenv
load_dotenv()

import sqlalchemy as sa
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession

from coachbook.core.config import settings
from coachbook.core.errors import DomainError, domain_error_handler
from coachbook.core.logging import LoggingMiddleware, get_logger, setup_logging
from coachbook.db.session import get_session

# Set up structured logging
setup_logging(
    debug=settings.is_development,
    max_log_length=settings.MAX_LOG_LENGTH,
    level=settings.LOG_LEVEL,
)
logger = get_logger(__name__)

# Routers
from coachbook.api.routes.bookings import router as bookings_router
from coachbook.api.routes.coaches import router as coaches_router
from coachbook.api.routes.favorites import router as favorites_router
from coachbook.api.routes.notifications import router as notifications_router
from coachbook.api.routes.reviews import router as reviews_router
from coachbook.api.routes.schedules import router as schedules_router

app = FastAPI(title="Coachbook", description="Coach scheduling and session booking")

app.middleware("http")(
    LoggingMiddleware(
        log_requests=settings.LOG_REQUESTS or settings.is_development,
        log_responses=settings.LOG_RESPONSES,
        slow_threshold=settings.SLOW_REQUEST_THRESHOLD,
    )
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_exception_handler(DomainError, domain_error_handler)


# -------- Health / readiness (public) --------
@app.get("/healthz", include_in_schema=False)
async def healthz():
    return {"ok": True}


@app.get("/readyz", include_in_schema=False)
async def readyz(db: AsyncSession = Depends(get_session)):
    await db.execute(sa.text("SELECT 1"))
    return {"db": "ok"}


# -------- Include routers --------
app.include_router(bookings_router)
app.include_router(schedules_router)
app.include_router(coaches_router)
app.include_router(reviews_router)
app.include_router(favorites_router)
app.include_router(notifications_router)

logger.info("app_configured", env=settings.APP_ENV, timezone=settings.TIMEZONE)
