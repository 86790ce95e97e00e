# src/waitlist/main.py
"""Main entry point for the waitlist application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from waitlist.api.error_handlers import register_error_handlers
from waitlist.api.v1 import waitlist_router
from waitlist.core.logger import configure_logging
from waitlist.core.settings import settings
from waitlist.db.session import SessionLocal, create_tables
from waitlist.services.runtime import Runtime, build_runtime

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Two-step waitlist registration with referral gating",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

register_error_handlers(app)
app.include_router(waitlist_router)


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging(settings.log_level)
    create_tables()

    runtime = build_runtime(settings)
    with SessionLocal() as db:
        count = runtime.warm_presence(db)
    logger.info("Presence cache warmed with %d participants", count)

    if runtime.sweeper is not None:
        await runtime.sweeper.start()
    app.state.runtime = runtime


@app.on_event("shutdown")
async def on_shutdown() -> None:
    runtime: Runtime | None = getattr(app.state, "runtime", None)
    if runtime is None:
        return
    if runtime.sweeper is not None:
        await runtime.sweeper.stop()
    drained = await runtime.tasks.drain(settings.shutdown_drain_timeout_seconds)
    if drained:
        logger.info("Background tasks drained")
    else:
        logger.warning("Shutdown drain timed out after %.1fs", settings.shutdown_drain_timeout_seconds)
    app.state.runtime = None


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("waitlist.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
