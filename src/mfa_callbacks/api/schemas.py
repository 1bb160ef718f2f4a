"""Request and response models shared by the API routers."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import AliasChoices, BaseModel, Field

from mfa_callbacks.otp.manager import MAX_CODE_LENGTH, MIN_CODE_LENGTH

T = TypeVar("T")

E164_PATTERN = r"^\+[1-9]\d{1,14}$"
OTP_PATTERN = rf"^\d{{{MIN_CODE_LENGTH},{MAX_CODE_LENGTH}}}$"


class ApiResponse(BaseModel, Generic[T]):
    """Standard envelope returned by every endpoint.

    ``data`` is omitted from the serialized body when it is ``None``.
    """

    success: bool
    message: str
    data: T | None = None

    @classmethod
    def ok(cls, data: T | None = None, message: str = "Operation successful") -> ApiResponse[T]:
        return cls(success=True, message=message, data=data)

    @classmethod
    def error(cls, message: str) -> ApiResponse[T]:
        return cls(success=False, message=message)

    def body(self) -> dict:
        return self.model_dump(exclude_none=True)


class InitiateMfaRequest(BaseModel):
    phone_number: str = Field(
        ...,
        pattern=E164_PATTERN,
        validation_alias=AliasChoices("phone_number", "phoneNumber"),
        description="Destination phone number in E.164 format",
        examples=["+1234567890"],
    )


class OtpVerificationRequest(BaseModel):
    otp: str = Field(
        ...,
        pattern=OTP_PATTERN,
        description="One-time password to verify (4-8 digits)",
        examples=["123456"],
    )
