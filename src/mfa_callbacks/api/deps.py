"""FastAPI dependencies resolving the process-wide collaborators."""

from fastapi import Request

from mfa_callbacks.otp.manager import OtpManager
from mfa_callbacks.services.sms_service import SmsService


def get_otp_manager(request: Request) -> OtpManager:
    """The single OTP manager created in the application lifespan."""
    return request.app.state.otp_manager


def get_sms_service(request: Request) -> SmsService:
    return request.app.state.sms_service
