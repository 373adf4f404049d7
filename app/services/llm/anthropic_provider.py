"""
Anthropic provider - LLMProvider implementation for Claude.
"""
import asyncio
import logging
from typing import Any, List, Optional

import anthropic

from app.core.config import settings
from app.services.circuit_breaker import CircuitOpenError, circuit_llm
from .models import LLMRequest, LLMResponse, Message, StopReason
from .protocol import LLMError

logger = logging.getLogger(__name__)


class AnthropicProvider:
    """
    LLM provider backed by Anthropic Claude.

    Example:
        provider = AnthropicProvider(model_id="claude-3-5-haiku-20241022")
        response = await provider.generate(request)
    """

    STOP_REASON_MAP = {
        "end_turn": StopReason.END_TURN,
        "max_tokens": StopReason.MAX_TOKENS,
        "stop_sequence": StopReason.STOP_SEQUENCE,
    }

    def __init__(
        self,
        model_id: Optional[str] = None,
        api_key: Optional[str] = None,
        use_circuit_breaker: bool = True,
    ):
        """
        Args:
            model_id: Claude model (default: settings.LLM_MODEL)
            api_key: API key (default: settings.ANTHROPIC_API_KEY)
            use_circuit_breaker: Route calls through circuit_llm
        """
        self._model_id = model_id or settings.LLM_MODEL
        self._api_key = api_key or settings.ANTHROPIC_API_KEY
        self._use_circuit_breaker = use_circuit_breaker

        if not self._api_key:
            raise LLMError(
                "ANTHROPIC_API_KEY not configured",
                provider="anthropic",
                retryable=False,
            )

        self._client = anthropic.Anthropic(api_key=self._api_key)

    @property
    def model_id(self) -> str:
        return self._model_id

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generates a Claude answer.

        Raises:
            LLMError: API error, or the circuit is open
        """
        kwargs = {
            "model": self._model_id,
            "messages": self._convert_messages(request.messages),
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
        }
        if request.system_prompt:
            kwargs["system"] = request.system_prompt

        try:
            response = await self._call_api(kwargs)
        except CircuitOpenError as e:
            raise LLMError(str(e), provider="anthropic", retryable=False, original_error=e)
        except anthropic.RateLimitError as e:
            logger.warning(f"Anthropic rate limit: {e}")
            raise LLMError("Rate limited", provider="anthropic", retryable=True, original_error=e)
        except anthropic.APIConnectionError as e:
            raise LLMError(
                f"Connection error: {e}", provider="anthropic", retryable=True, original_error=e
            )
        except anthropic.APIError as e:
            raise LLMError(f"API error: {e}", provider="anthropic", retryable=False, original_error=e)
        except asyncio.TimeoutError as e:
            raise LLMError("Timeout", provider="anthropic", retryable=True, original_error=e)

        return self._convert_response(response)

    async def _call_api(self, kwargs: dict) -> Any:
        """The Anthropic client is synchronous: run it in the default executor."""

        def _sync_call():
            return self._client.messages.create(**kwargs)

        async def _async_call():
            loop = asyncio.get_event_loop()
            return await loop.run_in_executor(None, _sync_call)

        if self._use_circuit_breaker:
            return await circuit_llm.call(_async_call)
        return await _async_call()

    def _convert_messages(self, messages: List[Message]) -> List[dict]:
        return [msg.to_dict() for msg in messages]

    def _convert_response(self, response: Any) -> LLMResponse:
        content = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )

        return LLMResponse(
            content=content,
            stop_reason=self.STOP_REASON_MAP.get(response.stop_reason, StopReason.END_TURN),
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            },
            model_id=response.model,
        )
