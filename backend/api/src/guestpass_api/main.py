"""FastAPI application for the guestpass REST API.

This package provides REST endpoints for:
- Guest access (token, device and identity checks)
- Host-only device and link administration
- Health checks
"""

import logging
import os
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from guestpass.utils.logging import CorrelationIdFilter, StructuredFormatter
from guestpass_api.exceptions import register_exception_handlers
from guestpass_api.middleware import CorrelationIdMiddleware, NoStoreMiddleware
from guestpass_api.routes import access_router, admin_router, health_router

logger = logging.getLogger(__name__)

_handler = logging.StreamHandler()
_handler.addFilter(CorrelationIdFilter())
_handler.setFormatter(StructuredFormatter("%(levelname)s %(name)s %(message)s"))
logging.basicConfig(level=logging.INFO, handlers=[_handler])

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


def _cors_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOWED_ORIGINS", DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


app = FastAPI(
    title="Guestpass API",
    description="Invitation link access control with identity checks and device quotas",
    version="0.1.0",
)

app.add_middleware(NoStoreMiddleware, path_prefix="/api/access")
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# All routes live under /api to match the CDN path pattern /api/*
app.include_router(health_router, prefix="/api")
app.include_router(access_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Root health check endpoint at /api/ping."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "guestpass-api",
    }


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
            "guestpass_api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["api/src", "shared/src"],
        )
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
