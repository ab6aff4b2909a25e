"""
Shikhi Lab IELTS API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- Background job scheduler (failed email redelivery)
- CORS middleware
- API routing
- Health check endpoints
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from app.api import api_router
from app.core.config import settings
from app.core.database import async_session_maker, close_db, init_db
from app.core.errors import register_exception_handlers
from app.core.redis import close_redis, get_redis, init_redis
from app.core.scheduler import (
    list_registered_jobs,
    pause_job,
    resume_job,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from app.modules.notifications.jobs import register_notification_jobs


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Connects Redis and the database and starts the job scheduler on
    startup; tears them down in reverse on shutdown. Outside production a
    failing dependency is reported and startup continues.
    """
    print(f"Starting Shikhi Lab IELTS API in {settings.python_env} mode...")

    try:
        await init_redis()
        print("[OK] Redis connected")
    except Exception as e:
        print(f"[FAIL] Redis connection failed, rate limits are per-process: {e}")
        if settings.is_production:
            raise

    try:
        await init_db()
        print("[OK] Database connected")
    except Exception as e:
        print(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    if settings.scheduler_enabled:
        try:
            register_notification_jobs()
            await start_scheduler()
            print("[OK] Background scheduler started")
        except Exception as e:
            print(f"[FAIL] Background scheduler failed to start: {e}")
            if settings.is_production:
                raise

    yield

    print("Shutting down Shikhi Lab IELTS API...")

    await stop_scheduler()
    await close_redis()
    await close_db()
    print("[OK] Cleanup complete")


app = FastAPI(
    title="Shikhi Lab IELTS API",
    description="Course enrollment, admission and approval API",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

register_exception_handlers(app)

app.include_router(api_router, prefix="/api/v1")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to Shikhi Lab IELTS API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check: the database must answer."""
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        raise HTTPException(status_code=503, detail={"status": "not ready"}) from e
    return {"status": "ready"}


def _require_development() -> None:
    """Debug endpoints answer 404 outside development."""
    if not settings.is_development:
        raise HTTPException(status_code=404, detail="Not Found")


@app.get("/debug/redis", tags=["Debug"], include_in_schema=settings.is_development)
async def debug_redis():
    """Test Redis connection."""
    _require_development()
    client = await get_redis()
    if client is None:
        return {"redis": "not initialized"}
    try:
        await client.ping()
    except Exception as e:
        return {"redis": "error", "message": type(e).__name__}
    return {"redis": "connected"}


# ============================================
# Background Job Debug Endpoints
# ============================================


@app.get("/debug/jobs", tags=["Debug"], include_in_schema=settings.is_development)
async def list_jobs():
    """List registered background jobs with next run time and pause state."""
    _require_development()
    return {"jobs": list_registered_jobs()}


@app.post("/debug/jobs/{job_id}/trigger", tags=["Debug"], include_in_schema=settings.is_development)
async def trigger_job(job_id: str):
    """
    Run a background job now.

    Args:
        job_id: Registered job ID, e.g. notifications_retry_failed_emails

    Raises:
        HTTPException 400: If job_id is not registered
        HTTPException 404: Outside development
    """
    _require_development()

    try:
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@app.post("/debug/jobs/{job_id}/pause", tags=["Debug"], include_in_schema=settings.is_development)
async def pause_job_endpoint(job_id: str):
    """Pause a scheduled job."""
    _require_development()
    return {"job_id": job_id, "paused": pause_job(job_id)}


@app.post("/debug/jobs/{job_id}/resume", tags=["Debug"], include_in_schema=settings.is_development)
async def resume_job_endpoint(job_id: str):
    """Resume a paused job."""
    _require_development()
    return {"job_id": job_id, "resumed": resume_job(job_id)}
