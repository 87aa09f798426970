"""Exception handlers for structured error responses."""

import logging

import sqlalchemy.exc
from fastapi import Request
from fastapi.responses import JSONResponse

from ..exceptions import DatabaseError, ErrorCode, MealPlannerError

logger = logging.getLogger(__name__)


async def meal_planner_exception_handler(request: Request, exc: MealPlannerError) -> JSONResponse:
    """
    Convert a MealPlannerError into its JSON body and status code.

    Version conflicts are an expected outcome of concurrent editing and are
    logged at INFO; other client errors at WARNING, server errors at ERROR.
    """
    extra = {
        "error_code": exc.error_code.value,
        "path": request.url.path,
        "method": request.method,
        "details": exc.details,
        "status_code": exc.status_code,
    }
    if exc.error_code is ErrorCode.CONFLICT:
        level = logging.INFO
    elif exc.status_code < 500:
        level = logging.WARNING
    else:
        level = logging.ERROR
    logger.log(level, "%s: %s", exc.error_code.value, exc.message, extra=extra)

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def database_exception_handler(request: Request, exc: sqlalchemy.exc.SQLAlchemyError) -> JSONResponse:
    """Unhandled storage failures answer 500 without leaking driver details."""
    logger.error(
        "Unhandled database error on %s %s: %s", request.method, request.url.path, exc,
        exc_info=exc,
    )
    error = DatabaseError(original_error=exc)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())
