"""Global exception handling: middleware plus handlers sharing one error envelope."""

from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.schemas.responses import ErrorBody, ErrorResponse
from app.utils.exceptions import LaCasaException
from app.utils.logger import get_logger

logger = get_logger(__name__)


def create_error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Dict[str, Any],
) -> JSONResponse:
    """
    Create JSON error response.

    Args:
        status_code: HTTP status code.
        error_code: Error code identifier.
        message: Error message.
        details: Additional error details.

    Returns:
        JSON response.
    """
    body = ErrorResponse(error=ErrorBody(code=error_code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def lacasa_exception_handler(request: Request, exc: LaCasaException) -> JSONResponse:
    logger.warning(
        f"LaCasa exception: {exc.error_code} - {exc.message}",
        extra={"extra_data": {"error_code": exc.error_code, "details": exc.details, "path": request.url.path}},
    )
    return create_error_response(exc.status_code, exc.error_code, exc.message, exc.details)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return create_error_response(exc.status_code, "HTTP_ERROR", str(exc.detail), {})


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return create_error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed",
        {"errors": errors},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LaCasaException, lacasa_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Global error handler middleware that catches and formats all exceptions."""

    async def dispatch(self, request: Request, call_next: Any) -> JSONResponse:
        """
        Handle exceptions and return proper JSON responses.

        Args:
            request: HTTP request.
            call_next: Next middleware/route handler.

        Returns:
            JSON response with error details.
        """
        # Let OPTIONS (CORS preflight) requests pass through untouched
        if request.method == "OPTIONS":
            return await call_next(request)

        try:
            response = await call_next(request)
            return response
        except LaCasaException as e:
            return await lacasa_exception_handler(request, e)
        except Exception as e:
            logger.error(
                f"Unhandled exception: {str(e)}",
                extra={"extra_data": {"exception_type": type(e).__name__}},
                exc_info=True,
            )
            return create_error_response(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                error_code="INTERNAL_SERVER_ERROR",
                message="An unexpected error occurred",
                details={},
            )
