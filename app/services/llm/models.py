"""
Data models for LLM providers.

Request/response dataclasses independent of any provider SDK.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class StopReason(str, Enum):
    """Why generation stopped."""
    END_TURN = "end_turn"
    MAX_TOKENS = "max_tokens"
    STOP_SEQUENCE = "stop_sequence"


@dataclass(frozen=True)
class Message:
    """
    One conversation message.

    Attributes:
        role: user or assistant
        content: Message text
    """
    role: MessageRole
    content: str

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=MessageRole.ASSISTANT, content=content)

    def to_dict(self) -> dict:
        return {"role": self.role.value, "content": self.content}


@dataclass
class LLMRequest:
    """
    Request to the LLM.

    Attributes:
        messages: Conversation
        system_prompt: System prompt (optional)
        max_tokens: Maximum tokens in the answer
        temperature: 0.0 deterministic, 1.0 creative
    """
    messages: List[Message]
    system_prompt: Optional[str] = None
    max_tokens: int = 300
    temperature: float = 0.7

    # Logging metadata
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LLMResponse:
    """
    Response from the LLM.

    Attributes:
        content: Generated text
        stop_reason: Why generation stopped
        usage: Tokens used (input, output)
        model_id: Model that answered
    """
    content: str
    stop_reason: StopReason = StopReason.END_TURN
    usage: Dict[str, int] = field(default_factory=dict)
    model_id: str = ""

    @property
    def input_tokens(self) -> int:
        return self.usage.get("input_tokens", 0)

    @property
    def output_tokens(self) -> int:
        return self.usage.get("output_tokens", 0)
