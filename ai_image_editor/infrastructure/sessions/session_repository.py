from __future__ import annotations

import threading
import uuid

from ai_image_editor.domain.entities.session import EditingSession
from ai_image_editor.domain.errors import SessionNotFoundError

# module-level in-memory store; sessions live as long as the process
_MEM_SESSIONS: dict[str, EditingSession] = {}
_MEM_LOCK = threading.Lock()


class SessionRepository:
    def __init__(self, store: dict[str, EditingSession] | None = None) -> None:
        self._store = _MEM_SESSIONS if store is None else store

    def create(self) -> EditingSession:
        session = EditingSession(id=str(uuid.uuid4()))
        with _MEM_LOCK:
            self._store[session.id] = session
        return session

    def get(self, session_id: str) -> EditingSession:
        session = self._store.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    def list_all(self) -> list[EditingSession]:
        return sorted(self._store.values(), key=lambda s: s.created_at, reverse=True)

    def delete(self, session_id: str) -> bool:
        with _MEM_LOCK:
            return self._store.pop(session_id, None) is not None
