"""Pure dataclasses for the debate bot. No logic beyond serialization helpers."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class DebateStatus(str, Enum):
    ACTIVE = "active"
    WON = "won"
    ENDED = "ended"


@dataclass
class Source:
    title: str
    url: str


@dataclass
class ToolCall:
    id: str
    name: str
    arguments: str  # raw JSON string as sent by the model


@dataclass
class ChatReply:
    content: str | None
    tool_calls: list[ToolCall] = field(default_factory=list)


@dataclass
class ToolResult:
    tool_name: str
    payload: dict[str, Any] | None = None
    error: str | None = None
    sources: list[Source] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_message_content(self) -> str:
        """JSON body for the tool message handed back to the model."""
        if self.error is not None:
            return json.dumps({"tool": self.tool_name, "error": self.error})
        return json.dumps(self.payload or {}, ensure_ascii=False)


@dataclass
class Completion:
    text: str
    sources: list[Source] = field(default_factory=list)


@dataclass
class DebateSession:
    session_id: str        # hosting thread id
    participant_id: str
    subject: str
    created_at: datetime
    last_activity_at: datetime
    participant_name: str = ""
    transcript: list[dict[str, Any]] = field(default_factory=list)
    status: DebateStatus = DebateStatus.ACTIVE
    fallacy_count: int = 0
    inactivity_streak: int = 0
    ended_at: datetime | None = None


@dataclass
class SessionStats:
    subject: str
    message_count: int
    fallacies_detected: int
    inactivity_streak: int
    status: DebateStatus
    duration_sec: float


@dataclass
class InboundEvent:
    thread_id: str         # thread for in-thread messages, channel otherwise
    channel_id: str
    author_id: str
    author_name: str
    text: str
    is_bot_author: bool = False
    in_thread: bool = False
    mentions_bot: bool = False
    history: list[dict[str, Any]] | None = None
    raw: Any = None        # transport-specific message object
