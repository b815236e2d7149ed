"""
Exception Handlers for FastAPI Application
"""

from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from mloptimizer.exceptions import (
    ConfigurationError,
    OptimizerError,
    ServiceNotRunningError,
)
from mloptimizer.utils.logger import get_logger

from .response_model import ErrorResponse

logger = get_logger(__name__)


def create_error_response(
    error_code: int, message: str, detail: str = "", error: Optional[OptimizerError] = None
) -> ErrorResponse:
    """Create standardized error response"""
    if error is None:
        return ErrorResponse(error_code=error_code, message=message, detail=detail)
    return ErrorResponse(
        error_code=error_code,
        message=message,
        detail=detail,
        context=error.context,
        suggestions=error.suggestions,
    )


def _status_for(exc: OptimizerError) -> int:
    if isinstance(exc, ServiceNotRunningError):
        return 503
    if isinstance(exc, ConfigurationError):
        return 400
    return 500


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with standardized error response"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.status_code, str(exc.detail)).model_dump(),
    )


async def optimizer_exception_handler(
    request: Request, exc: OptimizerError
) -> JSONResponse:
    """Handle optimizer errors raised by the read API"""
    status_code = _status_for(exc)
    logger.warning(f"Optimizer error on {request.url.path}: {exc}")

    return JSONResponse(
        status_code=status_code,
        content=create_error_response(
            status_code, exc.error_type, str(exc), error=exc
        ).model_dump(),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle general exceptions with logging"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content=create_error_response(500, "Internal server error", str(exc)).model_dump(),
    )
