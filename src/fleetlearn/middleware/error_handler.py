"""Global error handlers returning consistent JSON error responses.

Domain errors raised by the assignment layer are mapped here so routers can
let them propagate. The request session is closed (and its transaction
rolled back) before the response is sent.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fleetlearn.assignments.exceptions import NotFound, ReconciliationFailed, StoreError

logger = structlog.get_logger()


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": exc.errors()},
        )

    @app.exception_handler(NotFound)
    async def not_found_handler(_request: Request, exc: NotFound) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ReconciliationFailed)
    async def reconciliation_failed_handler(request: Request, exc: ReconciliationFailed) -> JSONResponse:
        """Tell the caller which phase failed; re-sending the same desired set is safe."""
        logger.error(
            "reconciliation_failed",
            path=request.url.path,
            phase=exc.phase,
            anchor_kind=exc.anchor.kind.value,
            anchor_id=exc.anchor.id,
            error=str(exc.__cause__),
        )
        return JSONResponse(
            status_code=500,
            content={"detail": str(exc), "phase": exc.phase},
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.error("store_error", path=request.url.path, error=str(exc), cause=str(exc.__cause__))
        return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions; always returns JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )
