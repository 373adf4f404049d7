"""
HttpEmailProvider - delivery through a transactional e-mail HTTP API.

POSTs JSON to EMAIL_API_URL with a bearer key:
    {"from": ..., "to": ..., "subject": ..., "text": ..., "html": ...}
2xx means accepted; the message id is read from "id" or "message_id".
"""
import logging
from typing import Optional

import httpx

from app.core.config import settings
from app.core.logging import mask_email
from app.services.circuit_breaker import CircuitOpenError, CircuitState, circuit_email
from app.services.delivery.base import DeliveryResult, OutboundEmail, ProviderType

logger = logging.getLogger(__name__)


class HttpEmailProvider:
    """
    Owns one httpx.AsyncClient for its whole lifetime.

    Server errors and transport failures count against circuit_email;
    4xx answers are per-recipient rejections and do not.
    """

    provider_type = ProviderType.HTTP

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        sender: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url or settings.EMAIL_API_URL
        self.api_key = api_key if api_key is not None else settings.EMAIL_API_KEY
        self.sender = sender or settings.email_from
        self.timeout = timeout or settings.EMAIL_TIMEOUT_SECONDS
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    @property
    def headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def open(self) -> None:
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            headers={"User-Agent": f"{settings.APP_NAME}/1.0"},
            transport=self._transport,
        )
        logger.info(f"E-mail HTTP client opened for {self.api_url}")

    async def close(self) -> None:
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        logger.info("E-mail HTTP client closed")

    async def health_check(self) -> bool:
        return self.is_open and circuit_email.state != CircuitState.OPEN

    async def _post(self, payload: dict) -> httpx.Response:
        response = await self._client.post(self.api_url, json=payload, headers=self.headers)
        if response.status_code >= 500:
            response.raise_for_status()
        return response

    async def deliver(self, email: OutboundEmail) -> DeliveryResult:
        if self._client is None:
            await self.open()

        payload = {
            "from": self.sender,
            "to": email.to,
            "subject": email.subject,
            "text": email.text,
            "html": email.html,
        }

        try:
            response = await circuit_email.call(self._post, payload)
        except CircuitOpenError as e:
            return DeliveryResult(success=False, error=str(e), provider=self.provider_type.value)
        except Exception as e:
            error_msg = self._extract_error(e)
            logger.warning(f"[email] Delivery to {mask_email(email.to)} failed: {error_msg}")
            return DeliveryResult(success=False, error=error_msg, provider=self.provider_type.value)

        if not response.is_success:
            error_msg = f"HTTP {response.status_code}: {response.text[:200]}"
            logger.warning(f"[email] Delivery to {mask_email(email.to)} rejected: {error_msg}")
            return DeliveryResult(success=False, error=error_msg, provider=self.provider_type.value)

        return DeliveryResult(
            success=True,
            message_id=self._message_id(response),
            provider=self.provider_type.value,
        )

    def _message_id(self, response: httpx.Response) -> Optional[str]:
        try:
            data = response.json()
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        return data.get("id") or data.get("message_id")

    def _extract_error(self, exc: Exception) -> str:
        if isinstance(exc, httpx.HTTPStatusError):
            return f"HTTP {exc.response.status_code}: {exc.response.text[:200]}"
        if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
            return "email_timeout"
        if isinstance(exc, httpx.ConnectError):
            return "email_connect_error"
        return str(exc) or type(exc).__name__
