"""In-memory implementation of SessionStore for testing."""

import uuid


class FakeSessionStore:
    def __init__(self):
        self.sessions: dict[str, str] = {}

    def create(self, user_id: str) -> str:
        session_id = uuid.uuid4().hex
        self.sessions[session_id] = user_id
        return session_id

    def get_user_id(self, session_id: str) -> str | None:
        return self.sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        return self.sessions.pop(session_id, None) is not None
