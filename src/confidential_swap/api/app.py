"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from confidential_swap import __version__
from confidential_swap.config import get_settings
from confidential_swap.errors import SwapServiceError
from confidential_swap.ledger.database import close_db, init_db
from confidential_swap.services.factory import create_orchestrator
from confidential_swap.services.orchestrator import SwapOrchestrator
from confidential_swap.utils.locks import LockTimeoutError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    if getattr(app.state, "orchestrator", None) is None:
        await init_db()
        orchestrator = create_orchestrator()
        await orchestrator.initialize()
        app.state.orchestrator = orchestrator
    yield
    # Shutdown
    await close_db()


async def service_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map service rejections to HTTP responses."""
    return JSONResponse(
        status_code=getattr(exc, "status_code", 400),
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


def create_app(orchestrator: Optional[SwapOrchestrator] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Confidential Swap API",
        description="Encrypted balances swapped into a public reserve asset",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.orchestrator = orchestrator

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SwapServiceError, service_error_handler)
    app.add_exception_handler(LockTimeoutError, service_error_handler)

    # Register routes
    from confidential_swap.api.routes import admin, health, swaps

    app.include_router(health.router, tags=["Health"])
    app.include_router(swaps.router, prefix="/api/v1", tags=["Swaps"])
    app.include_router(admin.router, tags=["Admin"])

    return app
