"""Exception handlers that render every failure in the ``ApiResponse`` envelope."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from mfa_callbacks.api.schemas import ApiResponse
from mfa_callbacks.exceptions import InvalidArgumentError, OtpAlreadyPendingError

logger = logging.getLogger(__name__)


def _envelope(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse.error(message).body(),
        headers=headers,
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = ", ".join(
        f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}"
        for err in exc.errors()
    )
    logger.error("Validation error on %s: %s", request.url.path, errors)
    return _envelope(status.HTTP_400_BAD_REQUEST, f"Validation failed: {errors}")


async def handle_invalid_argument(request: Request, exc: InvalidArgumentError) -> JSONResponse:
    logger.error("Invalid argument on %s: %s", request.url.path, exc)
    return _envelope(status.HTTP_400_BAD_REQUEST, str(exc))


async def handle_otp_pending(request: Request, exc: OtpAlreadyPendingError) -> JSONResponse:
    logger.info("Reissue refused for %s", exc.identity)
    return _envelope(
        status.HTTP_409_CONFLICT, "An OTP is already pending; use it or wait for it to expire"
    )


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        logger.error("Authentication error: %s", exc.detail)
    return _envelope(exc.status_code, str(exc.detail), headers=exc.headers)


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s", request.url.path)
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(InvalidArgumentError, handle_invalid_argument)
    app.add_exception_handler(OtpAlreadyPendingError, handle_otp_pending)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected)
