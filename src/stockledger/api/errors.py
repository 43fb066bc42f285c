"""Exception handlers for the stock ledger API."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError
from protean.integrations.fastapi import register_exception_handlers

from stockledger.locking import RowLockTimeout

logger = structlog.get_logger(__name__)


def _retryable(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": str(exc), "retryable": True})


async def row_lock_timeout_handler(request: Request, exc: RowLockTimeout) -> JSONResponse:
    logger.warning("Request gave up waiting for a row lock", path=request.url.path, key=exc.key)
    return _retryable(exc)


async def version_conflict_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    """Another worker process committed to the same aggregate first; the whole command was rolled back."""
    logger.warning("Request lost a version race", path=request.url.path, error=str(exc))
    return _retryable(exc)


def register_error_handlers(app: FastAPI) -> None:
    """Domain errors map to 4xx via Protean; lock timeouts and version conflicts map to a retryable 409."""
    register_exception_handlers(app)
    app.add_exception_handler(RowLockTimeout, row_lock_timeout_handler)
    app.add_exception_handler(ExpectedVersionError, version_conflict_handler)
