"""FastAPI application factory for the LeakTrail scan API."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from leaktrail import __version__
from leaktrail.config import LeakTrailConfig
from leaktrail.errors import LeakTrailError
from leaktrail.storage.db import get_db

logger = logging.getLogger(__name__)


async def create_app(
    config: LeakTrailConfig | None = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    config = config or LeakTrailConfig.load()

    app = FastAPI(
        title="LeakTrail",
        version=__version__,
        docs_url="/api/docs",
    )

    # Store config, db and the scan lock in app state
    app.state.config = config
    app.state.db = await get_db(config.data_dir / "leaktrail.db")
    app.state.scan_lock = asyncio.Lock()

    from leaktrail.web.api.scans import router as scans_router

    app.include_router(scans_router, prefix="/api")

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.exception_handler(LeakTrailError)
    async def leaktrail_error(_request: Request, exc: LeakTrailError):
        logger.warning("Scan request failed: %s", exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": str(exc)},
        )

    @app.on_event("shutdown")
    async def shutdown() -> None:
        if hasattr(app.state, "db"):
            await app.state.db.close()

    return app
