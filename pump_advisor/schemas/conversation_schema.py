"""Chat transcript and turn response schemas."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    """A single message in a session transcript."""

    role: Role
    content: str


class ChatReply(BaseModel):
    """Result of one processed chat turn."""

    session_id: str
    message: str
    stage: str
    recommendation: Optional[dict[str, Any]] = None


class SessionSnapshot(BaseModel):
    """Diagnostic view of a session's progress."""

    session_id: str
    stage: str
    data: dict[str, Any] = Field(default_factory=dict)
    message_count: int = 0
    stage_trace: list[str] = Field(default_factory=list)
