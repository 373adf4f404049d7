"""
Campaign message generation.

Drafts a campaign e-mail with the LLM. Whatever goes wrong with the
provider, the caller always gets a usable template back: the deterministic
fallback below, flagged with a note.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from app.core.exceptions import ValidationError
from app.services.llm import LLMError, LLMProvider, LLMRequest, Message

logger = logging.getLogger(__name__)

FALLBACK_NOTE = "Using fallback message due to API error"

SYSTEM_PROMPT = """You are a marketing expert creating personalized campaign messages.
The target audience consists of customers with the following characteristics: {audience}.

Create a concise, engaging message that would resonate with this audience.
The message should:
1. Be professional yet friendly
2. Include a clear call to action
3. Create a sense of urgency
4. Highlight the exclusive nature of the offer
5. Be relevant to the customer's location and context (based on audience description)
6. Include specific product categories if mentioned in the prompt

Address the customer with the placeholder {{customername}} in the body and
{{customerFirstName}} in the subject line.
Format the response as a complete email with subject line and body."""

FALLBACK_TEMPLATE = """Subject: Special Offer for {{customerFirstName}}!

Hello {{customername}},

{prompt}

This exclusive offer is available for a limited time only.

Best regards,
The Team"""


@dataclass(frozen=True)
class GeneratedMessage:
    message: str
    used_fallback: bool = False
    note: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"message": self.message}
        if self.note:
            data["note"] = self.note
        return data


def fallback_message(prompt: str) -> str:
    """Template used when the LLM is unavailable."""
    return FALLBACK_TEMPLATE.format(prompt=prompt.strip())


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, LLMError) and error.retryable


class MessageGenerator:
    """
    Example:
        generator = MessageGenerator(get_llm_provider())
        result = await generator.generate_text("20% off winter jackets", "customers in Oslo")
    """

    def __init__(self, provider: Optional[LLMProvider] = None, max_tokens: int = 400):
        self.provider = provider
        self.max_tokens = max_tokens

    @retry(
        retry=retry_if_exception(_is_retryable),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _call_llm(self, request: LLMRequest) -> str:
        response = await self.provider.generate(request)
        return response.content.strip()

    async def generate_text(
        self,
        prompt: str,
        audience_description: str = "",
    ) -> GeneratedMessage:
        """
        Generates a campaign message.

        Args:
            prompt: What the campaign is about
            audience_description: Free-text description of the audience

        Returns:
            GeneratedMessage; used_fallback is set when the LLM failed

        Raises:
            ValidationError: empty prompt
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt is required")

        if self.provider is None:
            logger.info("No LLM provider configured, using fallback message")
            return GeneratedMessage(fallback_message(prompt), used_fallback=True, note=FALLBACK_NOTE)

        request = LLMRequest(
            messages=[Message.user(f"Campaign Context: {prompt.strip()}")],
            system_prompt=SYSTEM_PROMPT.format(audience=audience_description or "all customers"),
            max_tokens=self.max_tokens,
            temperature=0.7,
            context={"operation": "generate_message"},
        )

        try:
            content = await self._call_llm(request)
        except LLMError as e:
            logger.warning(f"Message generation failed, using fallback: {e}")
            return GeneratedMessage(fallback_message(prompt), used_fallback=True, note=FALLBACK_NOTE)

        if not content:
            logger.warning("LLM returned an empty message, using fallback")
            return GeneratedMessage(fallback_message(prompt), used_fallback=True, note=FALLBACK_NOTE)

        return GeneratedMessage(content)
