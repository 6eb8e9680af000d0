from pump_advisor.conversation.extractors import extract_fields
from pump_advisor.conversation.guardrails import GuardrailPipeline, MalformedRequestError
from pump_advisor.conversation.session_store import SessionStore, SessionSweeper
from pump_advisor.conversation.state_machine import (
    ConversationStateMachine,
    InvalidTransitionError,
    TransitionTrigger,
    build_summary,
)

__all__ = [
    "ConversationStateMachine",
    "InvalidTransitionError",
    "TransitionTrigger",
    "build_summary",
    "extract_fields",
    "GuardrailPipeline",
    "MalformedRequestError",
    "SessionStore",
    "SessionSweeper",
]
