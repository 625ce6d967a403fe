"""
SMS delivery via the Twilio REST API.

Without credentials (local dev) the sender only logs that a message
would have gone out.
"""

from __future__ import annotations

import httpx

from clarence.core.errors import ClarenceError
from clarence.core.logging import get_logger

logger = get_logger(__name__)

VERIFICATION_TEMPLATE = "Your Clarence verification code is: {code}. Valid for {minutes} minutes."
PASSWORD_RESET_TEMPLATE = "Your Clarence password reset code is: {code}. Valid for {minutes} minutes."


class SmsDeliveryError(ClarenceError):
    status_code = 502


class SmsSender:
    """Sends text messages through Twilio's Messages endpoint."""

    def __init__(
        self,
        *,
        account_sid: str = "",
        auth_token: str = "",
        from_number: str = "",
        api_base_url: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._account_sid = account_sid
        self._from_number = from_number
        self._configured = bool(account_sid and auth_token)
        self._client = httpx.AsyncClient(
            base_url=api_base_url,
            auth=(account_sid, auth_token),
            timeout=timeout,
            transport=transport,
        )
        if not self._configured:
            logger.warning("Twilio credentials not configured, SMS will only be logged")

    async def send(self, phone: str, message: str) -> None:
        if not self._configured:
            logger.warning("SMS not sent (no credentials)", to=_mask(phone))
            return

        try:
            response = await self._client.post(
                f"/Accounts/{self._account_sid}/Messages.json",
                data={"To": phone, "From": self._from_number, "Body": message},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Failed to send SMS", to=_mask(phone), error=str(exc))
            raise SmsDeliveryError("Failed to send SMS") from exc

        logger.info("SMS sent", to=_mask(phone))

    async def aclose(self) -> None:
        await self._client.aclose()


def _mask(phone: str) -> str:
    return f"***{phone[-4:]}" if len(phone) >= 4 else "***"
