import asyncio
import logging

import httpx

from farmout_dispatch.application.interfaces.notification_gateway import (
    NotificationGateway,
    NotificationResult,
)
from farmout_dispatch.infrastructure.circuit_breaker import CircuitBreakerError, sms_breaker

logger = logging.getLogger(__name__)


class TwilioSmsGateway(NotificationGateway):
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        base_url: str = "https://api.twilio.com",
        timeout_seconds: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        SMS gateway over the Twilio Messages REST API.

        Args:
            account_sid: Twilio account SID (also the basic auth user)
            auth_token: Twilio auth token
            from_number: Sending number in E.164
            base_url: API host, overridable for tests and regional edges
            timeout_seconds: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._transport = transport

    @property
    def messages_url(self) -> str:
        return f"{self._base_url}/2010-04-01/Accounts/{self._account_sid}/Messages.json"

    def _post_message(self, to: str, text: str) -> httpx.Response:
        with httpx.Client(
            timeout=self._timeout,
            auth=(self._account_sid, self._auth_token),
            transport=self._transport,
        ) as client:
            response = client.post(
                self.messages_url,
                data={"To": to, "From": self._from_number, "Body": text},
            )
        # Non-2xx must count as a breaker failure
        response.raise_for_status()
        return response

    async def send_message(self, to: str, text: str) -> NotificationResult:
        """
        Send one SMS, protected by the SMS circuit breaker.

        pybreaker tracks failures on synchronous callables, so the request
        runs on a worker thread and the breaker wraps that call.
        """
        try:
            response = await asyncio.to_thread(sms_breaker.call, self._post_message, to, text)
        except CircuitBreakerError as exc:
            logger.error(
                "SMS circuit breaker is open - provider unavailable",
                extra={"to": to, "circuit_state": str(exc)},
            )
            return NotificationResult(
                status="FAILED",
                error_code="CIRCUIT_OPEN",
                error_message="SMS provider temporarily unavailable (circuit breaker open)",
            )
        except httpx.TimeoutException as exc:
            logger.warning("SMS request timeout", extra={"to": to, "timeout": self._timeout})
            return NotificationResult(
                status="FAILED",
                error_code="TIMEOUT",
                error_message=str(exc),
            )
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "SMS provider rejected message",
                extra={"to": to, "http_status": exc.response.status_code},
            )
            return NotificationResult(
                status="FAILED",
                error_code="NON_2XX",
                error_message=exc.response.text,
                http_status=exc.response.status_code,
            )
        except httpx.HTTPError as exc:
            logger.error("SMS HTTP error", exc_info=exc, extra={"to": to})
            return NotificationResult(
                status="FAILED",
                error_code="HTTP_ERROR",
                error_message=str(exc),
            )

        message_id = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message_id = body.get("sid")
        return NotificationResult(
            status="SENT",
            message_id=message_id,
            http_status=response.status_code,
        )
