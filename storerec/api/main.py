"""FastAPI application main module.

This module defines the main FastAPI application instance and core API endpoints
for the StoreRec recommendation service: health, data status and metrics. It
also wires the structured request logging and the error handler that turns
``StoreRecException`` into JSON responses.
"""

import logging
import os
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storerec import __version__
from storerec.api.exceptions import StoreRecException
from storerec.api.logging_config import RequestLoggingMiddleware, setup_logging
from storerec.api.metrics import metrics_service
from storerec.api.routes import recommend

setup_logging(os.environ.get("STOREREC_LOG_LEVEL", "INFO"))

# Configure module logger
logger = logging.getLogger(__name__)

# Create FastAPI application instance
app = FastAPI(
    title="StoreRec API",
    description="Hybrid content and collaborative product recommendation service",
    version=__version__,
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(recommend.router)


@app.exception_handler(StoreRecException)
async def storerec_exception_handler(
    request: Request, exc: StoreRecException
) -> JSONResponse:
    """Render StoreRec errors as structured JSON."""
    logger.warning(
        f"{type(exc).__name__}: {exc.message}",
        extra={"path": str(request.url.path), "status_code": exc.status_code},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.get("/ping")
def ping() -> Dict[str, str]:
    """Health check endpoint.

    Returns:
        Dictionary with status key set to "ok".

    Example:
        >>> response = client.get("/ping")
        >>> assert response.json() == {"status": "ok"}
    """
    return {"status": "ok"}


@app.get("/status")
def status() -> Dict[str, Any]:
    """Report whether data is loaded and how much of it there is."""
    return {"status": "ok", "version": __version__, **recommend.get_data_status()}


@app.get("/metrics")
def metrics() -> Dict[str, Any]:
    """Recommendation traffic counters."""
    return metrics_service.get_metrics()


if __name__ == "__main__":
    import sys
    from pathlib import Path

    import uvicorn

    # Add project root to Python path for imports
    project_root = Path(__file__).parent.parent.parent
    sys.path.insert(0, str(project_root))

    uvicorn.run(
        "storerec.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
