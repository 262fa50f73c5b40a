"""FastAPI application for the saloon booking REST API.

Exposes the booking lifecycle and account bootstrap over HTTP:
- Health checks
- Caller account / admin check
- Booking creation, status transitions and deletion
- Saloon-owner booking lists
"""

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from salonbook import __version__
from salonbook.config import get_settings
from salonbook.utils.logging import configure_logging, get_logger
from salonbook_api.exceptions import register_exception_handlers
from salonbook_api.middleware.correlation import CorrelationIdMiddleware
from salonbook_api.routes.accounts import router as accounts_router
from salonbook_api.routes.bookings import router as bookings_router
from salonbook_api.routes.health import router as health_router
from salonbook_api.routes.saloons import router as saloons_router

configure_logging(logging.INFO)
logger = get_logger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Saloon Booking API",
        description="REST API for saloon bookings and account bootstrap",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    register_exception_handlers(app)

    # Include routers under /api prefix
    app.include_router(health_router, prefix="/api")
    app.include_router(accounts_router, prefix="/api")
    app.include_router(bookings_router, prefix="/api")
    app.include_router(saloons_router, prefix="/api")

    @app.get("/api/ping")
    async def ping() -> dict[str, Any]:
        """Root health check endpoint at /api/ping."""
        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat(),
            "service": "salonbook-api",
        }

    return app


app = create_app()

# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run(
            "salonbook_api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["api/src", "shared/src"],
        )
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
