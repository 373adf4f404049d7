"""
Mock LLM provider - for tests and for running without an API key.
"""
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .models import LLMRequest, LLMResponse, StopReason
from .protocol import LLMError


@dataclass
class MockLLMProvider:
    """
    Provider with canned answers.

    Example:
        mock = MockLLMProvider(default_response="Subject: Hi\\n\\nHello!")
        response = await mock.generate(request)

    Failures:
        mock = MockLLMProvider(should_fail=True, retryable=True)
    """

    default_response: str = "Mock response"
    model_id: str = "mock-model"

    response_callback: Optional[Callable[[LLMRequest], LLMResponse]] = None

    # Recorded for assertions
    calls: List[LLMRequest] = field(default_factory=list)

    should_fail: bool = False
    fail_message: str = "Mock error"
    retryable: bool = False

    async def generate(self, request: LLMRequest) -> LLMResponse:
        self.calls.append(request)

        if self.should_fail:
            raise LLMError(self.fail_message, provider="mock", retryable=self.retryable)

        if self.response_callback:
            return self.response_callback(request)

        return LLMResponse(
            content=self.default_response,
            stop_reason=StopReason.END_TURN,
            usage={"input_tokens": 10, "output_tokens": 20},
            model_id=self.model_id,
        )

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def last_request(self) -> Optional[LLMRequest]:
        return self.calls[-1] if self.calls else None

    def reset(self):
        self.calls.clear()
