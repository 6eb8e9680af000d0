"""
Reply generation collaborators.

The advisor hands a ReplyContext (stage, collected data, lookup results and,
at the end, the recommendation) plus the transcript to a ReplyGenerator:

1. OpenAIReplyGenerator   - chat completion with bounded exponential retry
2. TemplateReplyGenerator - deterministic stage questions, no network
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import openai
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from pump_advisor.config import settings
from pump_advisor.prompts.prompt_templates import (
    STAGE_QUESTIONS,
    build_recommendation_prompt,
    build_state_context,
)
from pump_advisor.prompts.system_prompts import ADVISOR_SYSTEM_PROMPT
from pump_advisor.schemas.conversation_schema import ChatMessage
from pump_advisor.schemas.recommendation_schema import RecommendationResult
from pump_advisor.schemas.session_schema import ConversationStage

logger = logging.getLogger(__name__)


class ReplyGenerationError(Exception):
    """Raised when a reply could not be generated after all retries."""


@dataclass
class ReplyContext:
    """Everything the reply generator may use for one turn."""
    stage: ConversationStage
    usage_type: str
    collected: dict = field(default_factory=dict)
    additional_info: str = ""
    fact_instruction: str = ""
    summary: str = ""
    recommendation: Optional[RecommendationResult] = None

    def system_messages(self) -> list[dict[str, str]]:
        """Per-turn system messages appended after the transcript."""
        messages = []
        if self.fact_instruction:
            messages.append({"role": "system", "content": self.fact_instruction})
        if self.additional_info:
            messages.append({"role": "system", "content": self.additional_info})
        if self.summary:
            messages.append({
                "role": "system",
                "content": f"Read this summary back to the customer and ask them to confirm:\n{self.summary}",
            })
        if self.recommendation is not None:
            messages.append({
                "role": "system",
                "content": build_recommendation_prompt(self.recommendation),
            })
        messages.append({
            "role": "system",
            "content": build_state_context(self.stage, self.usage_type, self.collected),
        })
        return messages


class ReplyGenerator(Protocol):
    def generate_reply(self, context: ReplyContext, transcript: list[ChatMessage]) -> str:
        ...


class OpenAIReplyGenerator:
    """Chat completion reply generator.

    Transient API failures are retried with exponential backoff. Once the
    attempts are exhausted a ReplyGenerationError is raised to the caller.
    """

    def __init__(
        self,
        client: Optional[openai.OpenAI] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_attempts: Optional[int] = None,
        wait: Optional[wait_base] = None,
    ) -> None:
        cfg = settings.model
        self.client = client or openai.OpenAI(api_key=cfg.api_key, timeout=cfg.llm_timeout_sec)
        self.model = model or cfg.llm_model
        self.temperature = cfg.llm_temperature if temperature is None else temperature
        self.max_attempts = max_attempts or cfg.llm_max_attempts
        self.wait = wait or wait_exponential(multiplier=1, min=1, max=10)

    def build_messages(self, context: ReplyContext, transcript: list[ChatMessage]) -> list[dict[str, str]]:
        messages = [{"role": "system", "content": ADVISOR_SYSTEM_PROMPT}]
        messages.extend({"role": m.role.value, "content": m.content} for m in transcript)
        messages.extend(context.system_messages())
        return messages

    def _complete(self, messages: list[dict[str, str]]) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
        )
        return response.choices[0].message.content or ""

    def generate_reply(self, context: ReplyContext, transcript: list[ChatMessage]) -> str:
        messages = self.build_messages(context, transcript)
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.wait,
            retry=retry_if_exception_type(openai.OpenAIError),
            before_sleep=lambda state: logger.warning(
                "Reply generation attempt %d failed: %s",
                state.attempt_number, state.outcome.exception(),
            ),
        )
        try:
            reply = retrying(self._complete, messages)
        except RetryError as e:
            raise ReplyGenerationError(
                f"Reply generation failed after {self.max_attempts} attempts"
            ) from e.last_attempt.exception()

        if not reply.strip():
            raise ReplyGenerationError("Reply generation returned an empty message")
        return reply


class TemplateReplyGenerator:
    """Offline reply generator that asks the stage question verbatim."""

    def generate_reply(self, context: ReplyContext, transcript: list[ChatMessage]) -> str:
        if context.stage == ConversationStage.SUMMARY and context.summary:
            return f"{context.summary}\n\n{STAGE_QUESTIONS[context.stage]}"
        if context.stage == ConversationStage.RECOMMENDATION and context.recommendation is not None:
            result = context.recommendation
            if not result.is_valid:
                return f"{result.message} You can reach us at {settings.business.contact_line}."
            return (
                f"I recommend the {result.pump_details.model} with "
                f"{result.solar_config.description}.\n\n{result.formatted_summary}"
            )
        return STAGE_QUESTIONS[context.stage]
