"""Conversation state for review chats.

A ChatSession is an append-only transcript plus a small state machine:

    idle -> submitting -> streaming -> idle
                  \\            \\
                   +-> errored <-+ -> idle (after acknowledge_error)

Streamed deltas are appended to the single assistant placeholder created on
submit, identified by its id.
"""

import time
import uuid
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, Optional, List, Any


class ChatState(Enum):
    """Lifecycle state of a conversation."""
    IDLE = "idle"
    SUBMITTING = "submitting"
    STREAMING = "streaming"
    ERRORED = "errored"


@dataclass
class Message:
    """A message in the conversation."""
    role: str
    content: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ChatSession:
    """Transcript and submit/stream state for one conversation."""

    def __init__(self, conversation_id: Optional[str] = None, title: str = "New Review"):
        self.id = conversation_id or str(uuid.uuid4())
        self.title = title
        self.created_at = time.time()
        self.state = ChatState.IDLE
        self.last_error: Optional[str] = None
        self._messages: List[Message] = []
        self._pending_id: Optional[str] = None

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    @property
    def pending_id(self) -> Optional[str]:
        """Id of the assistant message currently receiving deltas."""
        return self._pending_id

    @property
    def busy(self) -> bool:
        return self.state in (ChatState.SUBMITTING, ChatState.STREAMING)

    def submit(self, text: str = "") -> Optional[str]:
        """Start a new turn.

        Appends the user message (when there is text) and an empty assistant
        placeholder. Returns the placeholder id, or None when the session is
        not idle; a submit while busy or errored changes nothing.
        """
        if self.state != ChatState.IDLE:
            return None

        if text.strip():
            self._messages.append(Message(role="user", content=text))
        placeholder = Message(role="assistant")
        self._messages.append(placeholder)
        self._pending_id = placeholder.id
        self.state = ChatState.SUBMITTING
        return placeholder.id

    def append_chunk(self, message_id: str, delta: str) -> Message:
        """Append a streamed delta to the in-flight assistant message."""
        if not self.busy or message_id != self._pending_id:
            raise ValueError(f"Message {message_id} is not receiving a response")

        message = self._find(message_id)
        message.content += delta
        self.state = ChatState.STREAMING
        return message

    def complete(self) -> None:
        """The stream closed normally."""
        self.state = ChatState.IDLE
        self._pending_id = None

    def fail(self, error: str) -> None:
        """The turn failed; whatever was streamed so far stays in place."""
        self.state = ChatState.ERRORED
        self.last_error = error
        self._pending_id = None

    def acknowledge_error(self) -> None:
        if self.state == ChatState.ERRORED:
            self.state = ChatState.IDLE

    def history(self) -> List[Dict[str, str]]:
        """Transcript as plain role/content turns."""
        return [{"role": m.role, "content": m.content} for m in self._messages]

    def _find(self, message_id: str) -> Message:
        for message in self._messages:
            if message.id == message_id:
                return message
        raise KeyError(message_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "created_at": self.created_at,
            "state": self.state.value,
            "last_error": self.last_error,
            "messages": [m.to_dict() for m in self._messages],
        }


class ConversationStore:
    """In-memory registry of chat sessions."""

    def __init__(self):
        self._sessions: Dict[str, ChatSession] = {}

    def create_conversation(self, title: str = "New Review") -> ChatSession:
        session = ChatSession(title=title)
        self._sessions[session.id] = session
        return session

    def get_conversation(self, conversation_id: str) -> Optional[ChatSession]:
        return self._sessions.get(conversation_id)

    def list_conversations(self) -> List[Dict[str, Any]]:
        sessions = sorted(self._sessions.values(), key=lambda s: s.created_at, reverse=True)
        return [
            {"id": s.id, "title": s.title, "created_at": s.created_at, "state": s.state.value}
            for s in sessions
        ]

    def delete_conversation(self, conversation_id: str) -> bool:
        if conversation_id in self._sessions:
            del self._sessions[conversation_id]
            return True
        return False

    def get_all_streaming(self) -> Dict[str, Dict]:
        """Status of every conversation with a response in flight."""
        return {
            s.id: {"streaming": True, "state": s.state.value}
            for s in self._sessions.values()
            if s.busy
        }
