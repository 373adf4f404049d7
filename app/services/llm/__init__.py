"""
LLM providers.

One interface over text-generation backends, so consumers never depend on
an SDK directly.

Usage:
    from app.services.llm import get_llm_provider, LLMRequest, Message

    provider = get_llm_provider()
    request = LLMRequest(messages=[Message.user("Write a promo e-mail")])
    response = await provider.generate(request)

In tests:
    from app.services.llm import MockLLMProvider
"""
from .anthropic_provider import AnthropicProvider
from .factory import clear_provider_cache, create_mock_provider, get_llm_provider
from .mock_provider import MockLLMProvider
from .models import LLMRequest, LLMResponse, Message, MessageRole, StopReason
from .protocol import LLMError, LLMProvider

__all__ = [
    "LLMProvider",
    "LLMError",
    "Message",
    "MessageRole",
    "LLMRequest",
    "LLMResponse",
    "StopReason",
    "AnthropicProvider",
    "MockLLMProvider",
    "get_llm_provider",
    "create_mock_provider",
    "clear_provider_cache",
]
