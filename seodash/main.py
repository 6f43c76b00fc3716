"""
SEO Auto Tool dashboard API: main entry point.
Serves the dashboard views (scans, AI analysis, content workflow, WordPress
sites, subscriptions, admin) over the hosted tables.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .database import close_db, connect_db, ensure_indexes, get_db
from .middleware.rate_limit import RateLimitMiddleware
from .routers.admin_router import router as admin_router
from .routers.alerts_router import router as alerts_router
from .routers.api_tokens_router import router as api_tokens_router
from .routers.billing_router import router as billing_router
from .routers.dashboard_router import router as dashboard_router
from .routers.drafts_router import router as drafts_router
from .routers.events_router import router as events_router
from .routers.optimization_router import router as optimization_router
from .routers.organizations_router import router as organizations_router
from .routers.reports_router import router as reports_router
from .routers.scans_router import router as scans_router
from .routers.schedule_router import router as schedule_router
from .routers.validation_router import router as validation_router
from .routers.wordpress_router import router as wordpress_router
from .services.scheduler import scheduler, start_scheduler, stop_scheduler

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    os.makedirs(settings.reports_dir, exist_ok=True)
    try:
        await connect_db()
        await ensure_indexes()
    except Exception as e:
        logger.warning("MongoDB not available, using in-memory store: %s", e)

    start_scheduler(settings.scheduler_poll_minutes)

    yield

    stop_scheduler()
    await close_db()


app = FastAPI(
    title="SEO Auto Tool API",
    description=(
        "**SEO Auto Tool** dashboard service\n\n"
        "- Scan history, comparison and validation badges\n"
        "- AI analysis standardisation\n"
        "- Content workflow and WordPress publishing targets\n"
        "- Plans, usage quotas and PDF reports\n"
        "- Admin console for packages, users and settings\n"
    ),
    version="1.0.0",
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
    lifespan=lifespan,
)

app.add_middleware(RateLimitMiddleware)

_dev_origins = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("EXTRA_ALLOWED_ORIGINS", "")
_extra_origins = [o.strip() for o in _extra.split(",") if o.strip()]

ALLOWED_ORIGINS = [settings.app_url] + _extra_origins + (
    _dev_origins if settings.environment != "production" else []
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(scans_router)
app.include_router(validation_router)
app.include_router(dashboard_router)
app.include_router(drafts_router)
app.include_router(wordpress_router)
app.include_router(api_tokens_router)
app.include_router(admin_router)
app.include_router(schedule_router)
app.include_router(optimization_router)
app.include_router(organizations_router)
app.include_router(events_router)
app.include_router(reports_router)
app.include_router(alerts_router)
app.include_router(billing_router)


@app.get("/", tags=["Health"])
async def root():
    return {"service": "SEO Auto Tool API", "version": "1.0.0", "status": "running", "docs": "/docs"}


@app.api_route("/health", methods=["GET", "HEAD"], tags=["Health"])
async def health():
    return {
        "status": "ok",
        "database": "connected" if get_db() is not None else "in-memory fallback",
        "environment": settings.environment,
        "scheduler": "running" if scheduler.running else "stopped",
        "scheduled_jobs": len(scheduler.get_jobs()),
    }
