from typing import Protocol
from domain.model.user import User


class UserRepository(Protocol):
    """Protocol defining the interface for user data access.

    All methods raise PersistenceError when the store fails. Writes that
    collide with a unique field raise UniqueViolationError.
    """
    def find_one(self, **filters) -> User | None:
        """Find a user matching every given field. Return None if not found."""
        ...

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        ...

    def create(self, user: User) -> User:
        """Insert a new user and return it."""
        ...

    def update(self, user_id: str, fields: dict) -> bool:
        """Write only the given fields of a stored user. A None value clears the field.

        Return False if no user has user_id.
        """
        ...
