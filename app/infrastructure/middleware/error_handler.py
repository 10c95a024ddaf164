"""Global error handler middleware."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.domain.errors import AppError
from app.infrastructure.telemetry import current_trace_id, get_logger

logger = get_logger(__name__)

SERVER_ERROR_BODY = {"message": "Server error", "code": "SERVER_ERROR"}


def error_handler_middleware(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app.

    Every error body has the shape {"message", "code"}; 5xx bodies never
    carry internal detail.
    """

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Handle all application errors."""
        status_code = exc.status_code

        log_level = "warning" if status_code < 500 else "error"
        getattr(logger, log_level)(
            f"Application error: {exc.message}",
            extra={
                "error_code": exc.code,
                "error_details": exc.details,
                "status_code": status_code,
                "path": request.url.path,
            },
        )

        if status_code >= 500:
            return JSONResponse(status_code=status_code, content=SERVER_ERROR_BODY)
        return JSONResponse(
            status_code=status_code,
            content={"message": exc.message, "code": exc.code},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed request shapes as 400."""
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        if location:
            message = f"{location}: {message}"

        logger.info(
            "Request validation failed",
            extra={"path": request.url.path, "error_count": len(errors)},
        )
        return JSONResponse(
            status_code=400,
            content={"message": message, "code": "VALIDATION_ERROR"},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Routing-level errors (unknown path, wrong method)."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail), "code": "HTTP_ERROR"},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "error_type": type(exc).__name__,
                "trace_id": current_trace_id(),
            },
        )

        return JSONResponse(status_code=500, content=SERVER_ERROR_BODY)
