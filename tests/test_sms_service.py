"""Tests for the Twilio-backed SmsService and the background delivery wrapper."""

from __future__ import annotations

import base64
import logging
from urllib.parse import parse_qs

import httpx
import pytest
from unittest.mock import AsyncMock

from mfa_callbacks.config import Settings
from mfa_callbacks.exceptions import SmsDeliveryError
from mfa_callbacks.services.sms_service import SmsService, deliver_otp


@pytest.fixture
def twilio_settings():
    return Settings(
        twilio_account_sid="AC123",
        twilio_auth_token="secret-token",
        twilio_phone_number="+15550000000",
        twilio_api_base_url="https://api.twilio.test/2010-04-01",
        otp_expiry_minutes=5,
        otp_message="Your verification code is {otp}. It expires in {minutes} minutes.",
    )


def _transport(status_code: int, captured: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(status_code, json={"sid": "SM42"})

    return httpx.MockTransport(handler)


# ──────────────────────────────────────────────────────────
# Message formatting
# ──────────────────────────────────────────────────────────
def test_format_message(twilio_settings):
    service = SmsService(twilio_settings)
    assert service.format_message("482913") == (
        "Your verification code is 482913. It expires in 5 minutes."
    )


# ──────────────────────────────────────────────────────────
# Sending
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_send_otp_posts_to_twilio(twilio_settings):
    captured: list[httpx.Request] = []
    service = SmsService(twilio_settings, transport=_transport(201, captured))

    await service.send_otp("+15551234567", "482913")

    assert len(captured) == 1
    request = captured[0]
    assert request.method == "POST"
    assert str(request.url) == (
        "https://api.twilio.test/2010-04-01/Accounts/AC123/Messages.json"
    )
    form = parse_qs(request.content.decode())
    assert form["To"] == ["+15551234567"]
    assert form["From"] == ["+15550000000"]
    assert "482913" in form["Body"][0]

    expected_auth = base64.b64encode(b"AC123:secret-token").decode()
    assert request.headers["Authorization"] == f"Basic {expected_auth}"


@pytest.mark.asyncio
async def test_send_otp_raises_on_rejection(twilio_settings):
    service = SmsService(twilio_settings, transport=_transport(400, []))
    with pytest.raises(SmsDeliveryError):
        await service.send_otp("+15551234567", "482913")


@pytest.mark.asyncio
async def test_send_otp_raises_on_transport_error(twilio_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    service = SmsService(twilio_settings, transport=httpx.MockTransport(handler))
    with pytest.raises(SmsDeliveryError):
        await service.send_otp("+15551234567", "482913")


@pytest.mark.asyncio
async def test_send_otp_without_credentials_only_logs(caplog):
    captured: list[httpx.Request] = []
    service = SmsService(Settings(twilio_account_sid=""), transport=_transport(201, captured))

    with caplog.at_level(logging.WARNING):
        await service.send_otp("+15551234567", "482913")

    assert captured == []
    assert not service.enabled
    assert "not configured" in caplog.text


# ──────────────────────────────────────────────────────────
# Fire-and-forget delivery
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_deliver_otp_logs_failures(caplog):
    service = SmsService(Settings())
    service.send_otp = AsyncMock(side_effect=SmsDeliveryError("boom"))

    with caplog.at_level(logging.ERROR):
        await deliver_otp(service, "+15551234567", "482913")

    service.send_otp.assert_awaited_once_with("+15551234567", "482913")
    assert "delivery to +15551234567 failed" in caplog.text


@pytest.mark.asyncio
async def test_send_otp_tolerates_non_json_success_body(twilio_settings, caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, text="OK")

    service = SmsService(twilio_settings, transport=httpx.MockTransport(handler))

    with caplog.at_level(logging.INFO):
        await service.send_otp("+15551234567", "482913")

    assert "sid=None" in caplog.text


def test_bad_template_raises_delivery_error(twilio_settings):
    twilio_settings.otp_message = "Code {code}"
    service = SmsService(twilio_settings)

    with pytest.raises(SmsDeliveryError):
        service.format_message("482913")


@pytest.mark.asyncio
async def test_deliver_otp_logs_bad_template(caplog):
    service = SmsService(Settings(otp_message="Code {code}"))

    with caplog.at_level(logging.ERROR):
        await deliver_otp(service, "+15551234567", "482913")

    assert "delivery to +15551234567 failed" in caplog.text
