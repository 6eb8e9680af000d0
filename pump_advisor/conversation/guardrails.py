"""
Input guardrails applied before a chat turn touches any session state.

Two independent checks:
1. RequestGuardrail  - rejects a missing session ID and empty or oversized messages
2. TopicGuardrail    - tells intake answers apart from general pump questions,
                       which are worth an extra fact lookup

These are composed into a GuardrailPipeline used by the advisor.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from pump_advisor.config import settings
from pump_advisor.utils import contains_any

logger = logging.getLogger(__name__)


class MalformedRequestError(Exception):
    """Raised for a client error; no session has been created or mutated."""


@dataclass
class GuardrailResult:
    """Outcome of a single guardrail check."""
    passed: bool
    violation_type: Optional[str] = None
    message: Optional[str] = None
    severity: str = "warning"  # "warning" | "block"


class RequestGuardrail:
    """Validates the raw chat request."""

    def __init__(self, max_length: Optional[int] = None) -> None:
        self.max_length = max_length or settings.session.max_message_length

    def check_session_id(self, session_id: Optional[str]) -> GuardrailResult:
        if not session_id or not session_id.strip():
            return GuardrailResult(
                passed=False,
                violation_type="missing_session_id",
                message="Session ID is required.",
                severity="block",
            )
        return GuardrailResult(passed=True)

    def check_message(self, message: Optional[str]) -> GuardrailResult:
        if message is None or not message.strip():
            return GuardrailResult(
                passed=False,
                violation_type="empty_message",
                message="Message must not be empty.",
                severity="block",
            )
        if len(message) > self.max_length:
            return GuardrailResult(
                passed=False,
                violation_type="message_too_long",
                message=f"Message exceeds {self.max_length} characters.",
                severity="block",
            )
        return GuardrailResult(passed=True)


class TopicGuardrail:
    """Flags messages that are not answers to the intake questions."""

    INTAKE_TERMS = [
        "location", "livestock", "animal", "well", "water", "pump",
        "house", "irrigation", "crop", "people", "static", "drawdown",
        "head", "elevation",
    ]

    def check_intake_topic(self, text: str) -> GuardrailResult:
        if contains_any(text, self.INTAKE_TERMS):
            return GuardrailResult(passed=True)
        return GuardrailResult(
            passed=False,
            violation_type="general_question",
            message="Message is outside the intake questions.",
            severity="warning",
        )


class GuardrailPipeline:
    """Composes the request and topic guardrails."""

    def __init__(self, max_length: Optional[int] = None) -> None:
        self.request = RequestGuardrail(max_length)
        self.topic = TopicGuardrail()

    def check_request(self, session_id: Optional[str], message: Optional[str]) -> list[GuardrailResult]:
        results = [
            self.request.check_session_id(session_id),
            self.request.check_message(message),
        ]
        return [r for r in results if not r.passed]

    def validate_request(self, session_id: Optional[str], message: Optional[str]) -> None:
        """Raise MalformedRequestError on the first blocking violation."""
        for result in self.check_request(session_id, message):
            if result.severity == "block":
                logger.info("Rejected chat request: %s", result.violation_type)
                raise MalformedRequestError(result.message)

    def is_intake_answer(self, text: str) -> bool:
        return self.topic.check_intake_topic(text).passed
