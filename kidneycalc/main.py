"""FastAPI application for KidneyCalc."""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kidneycalc import __version__
from kidneycalc.api import favorites_router, formulas_router
from kidneycalc.core.config import settings
from kidneycalc.services.evaluator import get_formula_evaluator
from kidneycalc.services.favorites import FavoritesStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Pre-warms the formula evaluator so the first request does not build the
    catalog index.
    """
    logging.getLogger("kidneycalc").setLevel(settings.log_level)
    startup_start = time.perf_counter()

    stats = get_formula_evaluator().get_stats()
    logger.info(f"Formula evaluator ready: {stats['total_formulas']} formulas registered")

    app.state.startup_time_ms = (time.perf_counter() - startup_start) * 1000
    logger.info(f"Server ready - total startup time: {app.state.startup_time_ms:.0f}ms")

    yield


def create_app() -> FastAPI:
    """Build the application with its own favorites store."""
    app = FastAPI(
        title=settings.app_name,
        description="Nephrology formula evaluation: eGFR, electrolytes, acid-base and mineral calculators.",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(formulas_router, prefix=settings.api_v1_prefix)
    app.include_router(favorites_router, prefix=settings.api_v1_prefix)

    app.state.favorites = FavoritesStore(is_known=get_formula_evaluator().has_formula)

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, Any]:
        """Health check endpoint (liveness probe).

        Use /ready for readiness checks.
        """
        return {
            "status": "healthy",
            "service": "kidneycalc",
            "version": __version__,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    @app.get("/ready", tags=["Health"])
    async def readiness_check() -> dict[str, Any]:
        """Readiness check endpoint.

        Confirms the formula catalog is loaded.
        """
        stats = get_formula_evaluator().get_stats()
        return {
            "status": "ready",
            "service": "kidneycalc",
            "version": __version__,
            "timestamp": datetime.now(UTC).isoformat(),
            "startup_time_ms": getattr(app.state, "startup_time_ms", 0),
            "formulas": stats["total_formulas"],
            "by_category": stats["by_category"],
        }

    @app.get("/", tags=["Health"])
    async def root() -> dict[str, str]:
        """Root endpoint with API info."""
        return {
            "service": f"{settings.app_name} API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
            "ready": "/ready",
            "formulas": f"{settings.api_v1_prefix}/formulas",
        }

    return app


app = create_app()
