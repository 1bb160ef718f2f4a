"""MFA callback service — configuration loaded from environment."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── OTP ───────────────────────────────────────────────
    otp_length: int = Field(6, le=8)
    otp_expiry_minutes: int = 5
    otp_sweep_interval_seconds: int = 300
    otp_allow_reissue: bool = True
    otp_message: str = "Your verification code is {otp}. It expires in {minutes} minutes."

    # ── Twilio SMS ────────────────────────────────────────
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_phone_number: str = ""
    twilio_api_base_url: str = "https://api.twilio.com/2010-04-01"
    sms_timeout_seconds: float = 10.0

    # ── JWT ───────────────────────────────────────────────
    jwt_secret: str = "changeme"
    jwt_algorithm: str = "HS256"
    jwt_audience: str | None = None
    jwt_issuer: str | None = None

    # ── App ───────────────────────────────────────────────
    app_name: str = "MFA Callback Service"
    app_version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton settings instance
settings = Settings()
