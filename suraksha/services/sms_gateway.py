"""Text-message channel (Fast2SMS bulkV2 compatible HTTP API)."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from suraksha.core.config import settings

logger = logging.getLogger(__name__)


class SmsGatewayError(Exception):
    """Raised when the SMS provider cannot be reached or rejects the request."""


@dataclass
class SmsResult:
    sent: bool
    request_id: str | None = None
    error: str | None = None


class SmsGateway:
    """Sends one message to many numbers in a single batched request."""

    def __init__(self, api_url: str | None = None, api_key: str | None = None, route: str | None = None) -> None:
        self.api_url = api_url or settings.sms_api_url
        self.api_key = api_key if api_key is not None else settings.sms_api_key
        self.route = route or settings.sms_route

    async def send(self, message: str, recipients: list[str]) -> SmsResult:
        if not self.api_key:
            raise SmsGatewayError("SMS_API_KEY is not configured")
        if not recipients:
            raise SmsGatewayError("No recipients to send to")

        payload = {
            "route": self.route,
            "message": message,
            "flash": "0",
            "numbers": ",".join(recipients),
        }
        try:
            async with httpx.AsyncClient(timeout=settings.channel_timeout_seconds) as client:
                response = await client.post(
                    self.api_url,
                    data=payload,
                    headers={"authorization": self.api_key},
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SmsGatewayError(f"SMS provider returned {exc.response.status_code}: {_provider_message(exc.response)}") from exc
        except httpx.HTTPError as exc:
            raise SmsGatewayError(f"SMS request failed: {exc}") from exc

        data = response.json()
        if data.get("return") is True:
            logger.info("SMS accepted by provider (request_id=%s, recipients=%s)", data.get("request_id"), len(recipients))
            return SmsResult(sent=True, request_id=data.get("request_id"))

        return SmsResult(sent=False, request_id=data.get("request_id"), error=_provider_message(response))


def _provider_message(response: httpx.Response) -> str:
    try:
        message = response.json().get("message")
    except ValueError:
        return response.text[:200]
    if isinstance(message, list):
        return "; ".join(str(m) for m in message)
    return str(message) if message else "unknown provider error"


# Singleton instance used across the app
sms_gateway = SmsGateway()
