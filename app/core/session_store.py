"""
In-memory chat session store. Keyed by session_id; history is not sent from frontend.

Each ChatSession carries its own lock so exchanges on different sessions never
contend; the store lock only guards the id -> session dict.
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Literal

from app.core.config import SESSION_ID_LENGTH, SESSION_TTL_SECONDS

logger = logging.getLogger(__name__)

Role = Literal["user", "model"]


@dataclass(frozen=True)
class Turn:
    role: Role
    text: str


class ChatSession:
    """Ordered, append-only conversation history plus the sticky tools flag."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self.lock = threading.RLock()
        self._history: list[Turn] = []
        self._tools_enabled = True
        self.last_active = time.monotonic()

    @property
    def tools_enabled(self) -> bool:
        return self._tools_enabled

    @tools_enabled.setter
    def tools_enabled(self, value: bool) -> None:
        with self.lock:
            self._tools_enabled = bool(value)

    @property
    def history(self) -> tuple[Turn, ...]:
        """Snapshot of the turns so far (tuple so caller cannot mutate the session)."""
        with self.lock:
            return tuple(self._history)

    def add_user_message(self, text: str) -> None:
        self._append("user", text)

    def add_model_message(self, text: str) -> None:
        self._append("model", text)

    def _append(self, role: Role, text: str) -> None:
        with self.lock:
            self._history.append(Turn(role=role, text=text))
            self.last_active = time.monotonic()
        logger.info("[session_store:append] session_id=%s role=%s text_len=%d", self.session_id, role, len(text))


class SessionStore:
    """Thread-safe registry of ChatSession objects."""

    def __init__(self, ttl_seconds: float = SESSION_TTL_SECONDS) -> None:
        self.ttl_seconds = ttl_seconds
        self._sessions: dict[str, ChatSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create_session(self) -> ChatSession:
        """Register and return a new session with empty history and tools enabled."""
        if self.ttl_seconds > 0:
            self.evict_expired()
        with self._lock:
            session_id = _new_session_id()
            while session_id in self._sessions:
                session_id = _new_session_id()
            session = ChatSession(session_id)
            self._sessions[session_id] = session
            total = len(self._sessions)
        logger.info("[session_store:create_session] OUT session_id=%s sessions=%d", session_id, total)
        return session

    def get_session(self, session_id: str) -> ChatSession | None:
        """Return the session, or None when unknown (or idle past the TTL)."""
        if not session_id or not isinstance(session_id, str):
            logger.info("[session_store:get_session] IN  session_id=%r -> none", session_id)
            return None
        with self._lock:
            session = self._sessions.get(session_id)
        if session is not None and self._is_expired(session, time.monotonic()):
            logger.info("[session_store:get_session] session_id=%s expired", session_id)
            return None
        logger.info("[session_store:get_session] IN  session_id=%s found=%s", session_id, session is not None)
        return session

    def evict_expired(self) -> int:
        """Drop sessions idle longer than the TTL. Returns how many were removed."""
        if self.ttl_seconds <= 0:
            return 0
        now = time.monotonic()
        with self._lock:
            stale = [sid for sid, s in self._sessions.items() if self._is_expired(s, now)]
            for sid in stale:
                del self._sessions[sid]
        if stale:
            logger.info("[session_store:evict_expired] removed=%d", len(stale))
        return len(stale)

    def _is_expired(self, session: ChatSession, now: float) -> bool:
        return self.ttl_seconds > 0 and now - session.last_active > self.ttl_seconds


def _new_session_id() -> str:
    return uuid.uuid4().hex[:SESSION_ID_LENGTH]


session_store = SessionStore()
