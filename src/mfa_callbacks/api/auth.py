"""MFA endpoints — issue an OTP by SMS and verify it.

Endpoints
---------
POST /api/v1/auth/initiate-mfa   → issue a code for the token's subject, SMS it
POST /api/v1/auth/verify-otp     → check a submitted code for the token's subject
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.responses import JSONResponse

from mfa_callbacks.api.deps import get_otp_manager, get_sms_service
from mfa_callbacks.api.schemas import ApiResponse, InitiateMfaRequest, OtpVerificationRequest
from mfa_callbacks.otp.manager import OtpManager
from mfa_callbacks.security.jwt_auth import Principal, get_current_principal
from mfa_callbacks.services.sms_service import SmsService, deliver_otp

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["authentication"])

INVALID_OTP_MESSAGE = "Invalid or expired OTP"


@router.post(
    "/initiate-mfa",
    response_model=ApiResponse[str],
    response_model_exclude_none=True,
    summary="Initiate MFA",
)
async def initiate_mfa(
    body: InitiateMfaRequest,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(get_current_principal),
    otp_manager: OtpManager = Depends(get_otp_manager),
    sms_service: SmsService = Depends(get_sms_service),
):
    """Generate an OTP for the caller and send it by SMS.

    The code is stored before delivery is scheduled; delivery runs after
    the response and its outcome does not affect this request.
    """
    code = otp_manager.issue(principal.subject)
    background_tasks.add_task(deliver_otp, sms_service, body.phone_number, code)

    logger.info("MFA initiated for user %s", principal.subject)
    return ApiResponse.ok("OTP sent successfully")


@router.post(
    "/verify-otp",
    response_model=ApiResponse[str],
    response_model_exclude_none=True,
    responses={status.HTTP_400_BAD_REQUEST: {"model": ApiResponse[str]}},
    summary="Verify OTP",
)
async def verify_otp(
    body: OtpVerificationRequest,
    principal: Principal = Depends(get_current_principal),
    otp_manager: OtpManager = Depends(get_otp_manager),
):
    """Validate the caller's OTP, consuming it on success."""
    if not otp_manager.validate(principal.subject, body.otp):
        logger.warning("Invalid OTP attempt for user %s", principal.subject)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ApiResponse.error(INVALID_OTP_MESSAGE).body(),
        )

    logger.info("OTP verified for user %s", principal.subject)
    return ApiResponse.ok("OTP verified successfully")
