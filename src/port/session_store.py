"""Port definition for the server-side session store."""

from typing import Protocol


class SessionStore(Protocol):
    def create(self, user_id: str) -> str:
        """Start a session for user_id and return its session id."""
        ...

    def get_user_id(self, session_id: str) -> str | None:
        """Return the user id bound to a live session, or None."""
        ...

    def delete(self, session_id: str) -> bool:
        """End a session. Return True if one was removed."""
        ...
