"""
Factory for LLM providers.

Centralizes provider creation for dependency injection.
"""
import logging
from functools import lru_cache
from typing import Optional

from app.core.config import settings
from .anthropic_provider import AnthropicProvider
from .mock_provider import MockLLMProvider
from .protocol import LLMProvider

logger = logging.getLogger(__name__)


@lru_cache()
def get_llm_provider() -> Optional[LLMProvider]:
    """
    Configured LLM provider, or None when ANTHROPIC_API_KEY is not set.

    Without a provider the message generator uses its template fallback.
    """
    if not settings.ANTHROPIC_API_KEY:
        logger.warning("ANTHROPIC_API_KEY not set, message generation will use the fallback")
        return None
    return AnthropicProvider(model_id=settings.LLM_MODEL)


def create_mock_provider(response: str = "Mock response") -> LLMProvider:
    return MockLLMProvider(default_response=response)


def clear_provider_cache():
    """Clears the cached provider (tests)."""
    get_llm_provider.cache_clear()
