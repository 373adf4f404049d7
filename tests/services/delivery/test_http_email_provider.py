"""
Tests for HttpEmailProvider, with httpx.MockTransport in place of the network.
"""
import json

import httpx
import pytest

from app.services.circuit_breaker import CircuitState, circuit_email
from app.services.delivery import HttpEmailProvider, OutboundEmail

EMAIL = OutboundEmail(
    to="ada@example.com",
    subject="Hi Ada",
    text="Hello Ada",
    html="<html><body>Hello Ada</body></html>",
)


def make_provider(handler, **kwargs):
    return HttpEmailProvider(
        api_url="https://mail.test/send",
        api_key=kwargs.pop("api_key", "secret"),
        sender='"Shop" <shop@example.com>',
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


class TestDeliver:
    """Tests for deliver()."""

    @pytest.mark.asyncio
    async def test_success_returns_message_id(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(202, json={"id": "msg-1"})

        provider = make_provider(handler)
        await provider.open()

        result = await provider.deliver(EMAIL)
        await provider.close()

        assert result.success is True
        assert result.message_id == "msg-1"
        assert seen["auth"] == "Bearer secret"
        assert seen["body"] == {
            "from": '"Shop" <shop@example.com>',
            "to": "ada@example.com",
            "subject": "Hi Ada",
            "text": "Hello Ada",
            "html": "<html><body>Hello Ada</body></html>",
        }

    @pytest.mark.asyncio
    async def test_rejection_is_a_failure_result(self):
        provider = make_provider(lambda request: httpx.Response(422, text="invalid recipient"))
        await provider.open()

        result = await provider.deliver(EMAIL)

        assert result.success is False
        assert "422" in result.error
        assert circuit_email.consecutive_failures == 0

    @pytest.mark.asyncio
    async def test_server_error_counts_against_circuit(self):
        provider = make_provider(lambda request: httpx.Response(503, text="down"))
        await provider.open()

        result = await provider.deliver(EMAIL)

        assert result.success is False
        assert "503" in result.error
        assert circuit_email.consecutive_failures == 1

    @pytest.mark.asyncio
    async def test_connection_error_is_not_raised(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = make_provider(handler)
        await provider.open()

        result = await provider.deliver(EMAIL)

        assert result.success is False
        assert result.error == "email_connect_error"

    @pytest.mark.asyncio
    async def test_open_circuit_short_circuits(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"id": "x"})

        provider = make_provider(handler)
        await provider.open()
        circuit_email.state = CircuitState.OPEN
        circuit_email.last_failure = None

        result = await provider.deliver(EMAIL)

        assert result.success is False
        assert calls == []

    @pytest.mark.asyncio
    async def test_non_json_success_has_no_message_id(self):
        provider = make_provider(lambda request: httpx.Response(200, text="queued"))
        await provider.open()

        result = await provider.deliver(EMAIL)

        assert result.success is True
        assert result.message_id is None

    @pytest.mark.asyncio
    async def test_opens_lazily(self):
        provider = make_provider(lambda request: httpx.Response(200, json={"message_id": "m"}))

        result = await provider.deliver(EMAIL)

        assert provider.is_open
        assert result.message_id == "m"
        await provider.close()


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_health_follows_client_and_circuit(self):
        provider = make_provider(lambda request: httpx.Response(200))

        assert await provider.health_check() is False

        await provider.open()
        assert await provider.health_check() is True

        circuit_email.state = CircuitState.OPEN
        assert await provider.health_check() is False

        await provider.close()
        assert provider.is_open is False

    @pytest.mark.asyncio
    async def test_no_authorization_header_without_key(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200)

        provider = make_provider(handler, api_key="")
        await provider.open()
        await provider.deliver(EMAIL)

        assert seen["auth"] is None
