# jobdispatch/transport/http_app.py
"""
HTTP surface for the dispatch engine.

Routes:
- ``POST /dispatch`` - enrich a booking for a driver, persist and push
- driver notification inbox (unread, history, unread count, mark read)
- ``/health``, ``/ready``, ``/metrics``
"""
from __future__ import annotations

import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from jobdispatch.config import settings
from jobdispatch.core.dispatch.orchestrator import DispatchEnrichmentOrchestrator
from jobdispatch.core.engine.ports import AsyncNotificationStore
from jobdispatch.infra.db_async import close_pool, get_pool, init_pool
from jobdispatch.infra.enrichment import build_enricher
from jobdispatch.infra.http_client import close_all_sessions
from jobdispatch.infra.logging_config import get_logger, setup_logging
from jobdispatch.infra.memory_notification_store import InMemoryNotificationStore
from jobdispatch.infra.metrics import get_metrics_collector
from jobdispatch.infra.migrations_async import apply_migrations
from jobdispatch.infra.pg_notification_repo_async import AsyncPostgresNotificationStore
from jobdispatch.infra.realtime import get_realtime_channel
from jobdispatch.transport.schemas import (
    DispatchIn,
    MarkReadIn,
    MarkReadOut,
    NotificationOut,
    UnreadCountOut,
)
from jobdispatch.transport.security import require_metrics_auth, sanitize_error_message

# Initialize logging first
setup_logging(
    level=settings.log_level,
    use_json=settings.is_production,
)

logger = get_logger(__name__)

_DRAIN_TIMEOUT_SECONDS = 10.0


# ============================================================================
# DEPENDENCIES
# ============================================================================

def get_orchestrator(request: Request) -> DispatchEnrichmentOrchestrator:
    return request.app.state.orchestrator


def get_store(request: Request) -> AsyncNotificationStore:
    return request.app.state.store


def _build_store() -> AsyncNotificationStore:
    if settings.notification_store == "memory":
        return InMemoryNotificationStore()
    return AsyncPostgresNotificationStore()


# ============================================================================
# LIFESPAN
# ============================================================================

@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Application lifecycle: startup and shutdown"""

    logger.info(
        "Starting application: env=%s, store=%s",
        settings.app_env, settings.notification_store,
    )

    if settings.notification_store == "postgres":
        await init_pool()
        if settings.run_migrations_on_startup:
            result = await apply_migrations()
            logger.info("Migrations applied on startup: %s", result["applied"])

    store = _build_store()
    orchestrator = DispatchEnrichmentOrchestrator(
        store=store,
        enricher=build_enricher(settings),
        realtime=get_realtime_channel(settings),
        store_timeout_seconds=settings.store_timeout_seconds,
        local_timezone=settings.local_timezone,
    )
    fastapi_app.state.store = store
    fastapi_app.state.orchestrator = orchestrator

    yield

    # SHUTDOWN
    logger.info("Shutting down application")
    await orchestrator.drain(timeout=_DRAIN_TIMEOUT_SECONDS)
    await close_all_sessions()
    if settings.notification_store == "postgres":
        await close_pool()


# ============================================================================
# CREATE APP
# ============================================================================

app = FastAPI(
    title="Job Dispatch Enrichment Engine",
    description="Enriched driver job notifications",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
    openapi_url=None if settings.is_production else "/openapi.json",
)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    if exc.status_code >= 500:
        logger.error("Server error: %s", exc.detail, extra={"status_code": exc.status_code})

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception: %s", exc.__class__.__name__, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": sanitize_error_message(exc, settings.is_production)},
    )


# ============================================================================
# DISPATCH
# ============================================================================

@app.post("/dispatch", status_code=201, response_model=NotificationOut)
async def dispatch_booking(
    body: DispatchIn,
    orchestrator: DispatchEnrichmentOrchestrator = Depends(get_orchestrator),
):
    notification = await orchestrator.dispatch(body.booking.to_domain(), body.driver_id, body.type)
    if notification is None:
        raise HTTPException(status_code=503, detail="Notification could not be stored")
    return NotificationOut.from_domain(notification)


# ============================================================================
# DRIVER INBOX
# ============================================================================

@app.get("/drivers/{driver_id}/notifications/unread", response_model=list[NotificationOut])
async def list_unread(driver_id: str, store: AsyncNotificationStore = Depends(get_store)):
    return [NotificationOut.from_domain(n) for n in await store.list_unread(driver_id)]


@app.get("/drivers/{driver_id}/notifications/history", response_model=list[NotificationOut])
async def list_history(
    driver_id: str,
    limit: int = Query(default=100, ge=1, le=500),
    store: AsyncNotificationStore = Depends(get_store),
):
    return [NotificationOut.from_domain(n) for n in await store.list_history(driver_id, limit=limit)]


@app.get("/drivers/{driver_id}/notifications/unread/count", response_model=UnreadCountOut)
async def unread_count(driver_id: str, store: AsyncNotificationStore = Depends(get_store)):
    return UnreadCountOut(driver_id=driver_id, unread=await store.count_unread(driver_id))


@app.post("/notifications/{notification_id}/read", status_code=204)
async def mark_read(notification_id: str, store: AsyncNotificationStore = Depends(get_store)):
    try:
        uuid.UUID(notification_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Notification not found")

    if not await store.mark_read(notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")


@app.post("/drivers/{driver_id}/notifications/read", response_model=MarkReadOut)
async def mark_all_read(
    driver_id: str,
    body: MarkReadIn | None = None,
    store: AsyncNotificationStore = Depends(get_store),
):
    ids = body.notification_ids if body else None
    if ids is not None:
        try:
            ids = [str(uuid.UUID(i)) for i in ids]
        except ValueError:
            raise HTTPException(status_code=422, detail="Invalid notification id")
    return MarkReadOut(updated=await store.mark_all_read(driver_id, ids))


# ============================================================================
# MONITORING
# ============================================================================

@app.get("/health")
def health():
    """Basic liveness check."""
    return {"status": "healthy"}


@app.get("/ready")
async def readiness():
    """Readiness: the notification store must be reachable."""
    if settings.notification_store != "postgres":
        return {"status": "healthy"}

    try:
        pool = get_pool()
        async with pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
    except Exception as exc:
        logger.warning("Readiness check failed: %s", exc)
        return JSONResponse(status_code=503, content={"status": "unhealthy"})

    return {"status": "healthy"}


@app.get("/metrics", dependencies=[Depends(require_metrics_auth)])
def metrics():
    return get_metrics_collector().get_metrics()
