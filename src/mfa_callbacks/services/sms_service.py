"""SMS service — delivers OTP codes through the Twilio REST API."""

from __future__ import annotations

import logging

import httpx

from mfa_callbacks.config import Settings, settings as default_settings
from mfa_callbacks.exceptions import SmsDeliveryError

logger = logging.getLogger(__name__)


class SmsService:
    """Sends OTP text messages via Twilio's Messages endpoint.

    When Twilio credentials are not configured the message is only logged,
    which keeps local development and tests free of network calls.
    """

    def __init__(
        self,
        config: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or default_settings
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(
            self._config.twilio_account_sid
            and self._config.twilio_auth_token
            and self._config.twilio_phone_number
        )

    def format_message(self, otp: str) -> str:
        try:
            return self._config.otp_message.format(
                otp=otp, minutes=self._config.otp_expiry_minutes
            )
        except (KeyError, IndexError, ValueError) as exc:
            raise SmsDeliveryError(
                f"Invalid OTP message template: {self._config.otp_message!r}"
            ) from exc

    async def send_otp(self, phone_number: str, otp: str) -> None:
        """Send *otp* to *phone_number* (E.164).

        Raises
        ------
        SmsDeliveryError
            If the message template is invalid, or Twilio is unreachable or
            rejects the message.
        """
        body = self.format_message(otp)

        if not self.enabled:
            logger.warning(
                "Twilio credentials not configured — SMS to %s logged only", phone_number
            )
            logger.debug("SMS body for %s: %s", phone_number, body)
            return

        url = (
            f"{self._config.twilio_api_base_url.rstrip('/')}/Accounts/"
            f"{self._config.twilio_account_sid}/Messages.json"
        )
        payload = {
            "To": phone_number,
            "From": self._config.twilio_phone_number,
            "Body": body,
        }

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self._config.sms_timeout_seconds
            ) as client:
                resp = await client.post(
                    url,
                    data=payload,
                    auth=(self._config.twilio_account_sid, self._config.twilio_auth_token),
                )
        except httpx.HTTPError as exc:
            raise SmsDeliveryError(f"Failed to send OTP to {phone_number}") from exc

        if resp.status_code not in (200, 201):
            raise SmsDeliveryError(
                f"Twilio rejected SMS to {phone_number}: {resp.status_code} {resp.text}"
            )

        # The message is already accepted here; a malformed body only loses the sid.
        try:
            sid = resp.json().get("sid")
        except (ValueError, AttributeError):
            sid = None
        logger.info("OTP sent to %s (sid=%s)", phone_number, sid)


async def deliver_otp(sms_service: SmsService, phone_number: str, otp: str) -> None:
    """Fire-and-forget wrapper run as a background task after issuance.

    The code is already stored by the time this runs; a delivery failure
    is reported here and never reaches the request that issued it.
    """
    try:
        await sms_service.send_otp(phone_number, otp)
    except SmsDeliveryError:
        logger.exception("OTP delivery to %s failed", phone_number)
