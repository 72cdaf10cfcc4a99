"""In-memory implementation of UserRepository for testing."""

import copy

from domain.model.errors import UniqueViolationError
from domain.model.user import UNIQUE_FIELDS, User


class FakeUserRepository:
    def __init__(self):
        self.store: dict[str, User] = {}

    # ── write operations ─────────────────────────────────────

    def create(self, user: User) -> User:
        if user.id in self.store:
            raise UniqueViolationError("Duplicate user id", field_name='id')
        self._check_unique(user)
        self.store[user.id] = copy.deepcopy(user)
        return user

    def update(self, user_id: str, fields: dict) -> bool:
        current = self.store.get(user_id)
        if current is None:
            return False
        updated = copy.deepcopy(current)
        for key, value in fields.items():
            setattr(updated, key, value)
        self._check_unique(updated)
        self.store[user_id] = updated
        return True

    # ── read operations ──────────────────────────────────────

    def find_one(self, **filters) -> User | None:
        for user in self.store.values():
            if all(getattr(user, key) == value for key, value in filters.items()):
                return copy.deepcopy(user)
        return None

    def get_by_id(self, user_id: str) -> User | None:
        user = self.store.get(user_id)
        return copy.deepcopy(user) if user else None

    # ── helpers ──────────────────────────────────────────────

    def _check_unique(self, user: User) -> None:
        for field_name in UNIQUE_FIELDS:
            value = getattr(user, field_name)
            if value is None:
                continue
            for other in self.store.values():
                if other.id != user.id and getattr(other, field_name) == value:
                    raise UniqueViolationError(
                        f"Duplicate value for {field_name}", field_name=field_name
                    )
