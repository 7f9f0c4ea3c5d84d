from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from ticketswift.core.errors import AppError
from ticketswift.schemas.common import fail


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log = logger.bind(path=request.url.path, error=exc.code, **exc.context)
    if exc.status_code >= 500:
        log.error("request failed: {}", exc.message)
    else:
        log.warning("request rejected: {}", exc.message)
    return JSONResponse(status_code=exc.status_code, content=fail(exc.message, code=exc.code))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{field}: {first.get('msg', 'invalid value')}" if field else "Invalid request body"
    logger.bind(path=request.url.path).warning("request validation failed: {}", message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=fail(message, code="VALIDATION_ERROR"))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.bind(path=request.url.path).opt(exception=exc).error("unhandled error")
    return JSONResponse(status_code=500, content=fail("Internal server error", code="INTERNAL_ERROR"))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
