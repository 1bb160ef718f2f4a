"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

from fastapi import FastAPI, Request

from mfa_callbacks.api.auth import router as auth_router
from mfa_callbacks.api.errors import register_exception_handlers
from mfa_callbacks.api.schemas import ApiResponse
from mfa_callbacks.config import settings
from mfa_callbacks.otp.manager import OtpManager
from mfa_callbacks.otp.store import OtpStore
from mfa_callbacks.scheduler import create_scheduler
from mfa_callbacks.services.sms_service import SmsService

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook.

    The OTP manager and its store live exactly as long as the process
    serves requests; nothing recreates them mid-run.
    """
    logger.info("Starting %s …", settings.app_name)
    app.state.otp_manager = OtpManager(
        OtpStore(),
        code_length=settings.otp_length,
        validity=timedelta(minutes=settings.otp_expiry_minutes),
        allow_reissue=settings.otp_allow_reissue,
    )
    app.state.sms_service = SmsService(settings)

    scheduler = create_scheduler(app.state.otp_manager, settings.otp_sweep_interval_seconds)
    scheduler.start()
    logger.info(
        "OTP expiry sweep scheduled every %ss", settings.otp_sweep_interval_seconds
    )
    yield
    logger.info("Shutting down %s …", settings.app_name)
    scheduler.shutdown(wait=False)


app = FastAPI(
    title=settings.app_name,
    description="One-time passcode issuance and verification for MFA callbacks",
    version=settings.app_version,
    lifespan=lifespan,
)

register_exception_handlers(app)
app.include_router(auth_router)


@app.get("/api/v1/health/status", tags=["health"])
async def health_status(request: Request) -> dict:
    """Liveness probe with a little service metadata."""
    data = {
        "service": settings.app_name,
        "status": "UP",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": settings.app_version,
        "pending_otps": request.app.state.otp_manager.pending_count,
    }
    return ApiResponse.ok(data, message="Service is healthy").body()


def run() -> None:
    """Serve the app with uvicorn (``mfa-callbacks`` console script)."""
    import uvicorn

    uvicorn.run(
        "mfa_callbacks.main:app",
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )
