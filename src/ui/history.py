"""Chat history kept in per-browser storage.

Sessions are plain pydantic models serialized into NiceGUI's
``app.storage.user`` under ``STORAGE_KEY``; nothing is persisted server-side.
"""

import logging
import random
import string
import time
from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

STORAGE_KEY = "insightflow_chat_history"
DEFAULT_TITLE = "New Chat"
TITLE_LENGTH = 30


def _now_ms() -> int:
    return int(time.time() * 1000)


def _random_suffix(length: int = 7) -> str:
    alphabet = string.ascii_lowercase + string.digits
    return "".join(random.choices(alphabet, k=length))


class ChatMessage(BaseModel):
    """A single message in a chat session."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: int


class ChatSession(BaseModel):
    """A titled conversation."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = DEFAULT_TITLE
    messages: list[ChatMessage] = Field(default_factory=list)
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")


class ChatHistory:
    """Session list plus the id of the session being viewed.

    Args:
        clock: Millisecond clock, injectable for tests.
    """

    def __init__(self, clock: Callable[[], int] = _now_ms) -> None:
        self._clock = clock
        self._sessions: list[ChatSession] = []
        self.current_session_id: str | None = None

    @property
    def sessions(self) -> list[ChatSession]:
        """All sessions, most recently updated first."""
        return sorted(self._sessions, key=lambda s: s.updated_at, reverse=True)

    @property
    def current_session(self) -> ChatSession | None:
        if self.current_session_id is None:
            return None
        return self._find(self.current_session_id)

    def _find(self, session_id: str) -> ChatSession | None:
        return next((s for s in self._sessions if s.id == session_id), None)

    def create_session(self, title: str = DEFAULT_TITLE) -> str:
        """Create an empty session and make it current."""
        now = self._clock()
        session = ChatSession(
            id=f"session_{now}_{_random_suffix()}",
            title=title,
            created_at=now,
            updated_at=now,
        )
        self._sessions.append(session)
        self.current_session_id = session.id
        return session.id

    def add_message(self, role: Literal["user", "assistant"], content: str) -> ChatMessage:
        """Append a message to the current session, creating one if needed.

        The first user message of a default-titled session becomes its title.
        """
        session = self.current_session
        if session is None:
            self.create_session()
            session = self.current_session

        now = self._clock()
        message = ChatMessage(
            id=f"msg_{now}_{_random_suffix()}",
            role=role,
            content=content,
            timestamp=now,
        )

        if session.title == DEFAULT_TITLE and role == "user" and not session.messages:
            session.title = content[:TITLE_LENGTH] + ("..." if len(content) > TITLE_LENGTH else "")

        session.messages.append(message)
        session.updated_at = now
        return message

    def switch_session(self, session_id: str) -> None:
        if self._find(session_id) is not None:
            self.current_session_id = session_id

    def delete_session(self, session_id: str) -> None:
        self._sessions = [s for s in self._sessions if s.id != session_id]
        if self.current_session_id == session_id:
            self.current_session_id = self._sessions[0].id if self._sessions else None

    def clear_all_sessions(self) -> None:
        self._sessions = []
        self.current_session_id = None

    def to_dict(self) -> dict[str, Any]:
        """Storage representation (camelCase, JSON-compatible)."""
        return {
            "sessions": [s.model_dump(by_alias=True) for s in self._sessions],
            "currentSessionId": self.current_session_id,
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any] | None, clock: Callable[[], int] = _now_ms
    ) -> "ChatHistory":
        """Rebuild history from storage; unreadable data yields an empty history."""
        history = cls(clock=clock)
        if not data:
            return history
        try:
            history._sessions = [
                ChatSession.model_validate(s) for s in data.get("sessions", [])
            ]
        except (ValidationError, TypeError, AttributeError) as e:
            logger.error(f"Error loading chat history: {e}")
            return cls(clock=clock)
        current = data.get("currentSessionId")
        if current is not None and history._find(current) is not None:
            history.current_session_id = current
        return history
