"""
LLM Provider Protocol - interface every provider implements.

Protocol gives duck typing with static checking: providers do not need to
inherit from anything.
"""
from typing import Optional, Protocol, runtime_checkable

from .models import LLMRequest, LLMResponse


@runtime_checkable
class LLMProvider(Protocol):
    """
    Interface for LLM providers.

    Attributes:
        model_id: Model identifier (e.g. "claude-3-5-haiku-20241022")
    """

    @property
    def model_id(self) -> str:
        ...

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generates an answer.

        Raises:
            LLMError: provider call failed
        """
        ...


class LLMError(Exception):
    """Generic LLM error."""

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        retryable: bool = False,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.retryable = retryable
        self.original_error = original_error

    def __str__(self) -> str:
        return f"[{self.provider}] {super().__str__()}"
