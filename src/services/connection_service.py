"""Platform connection management.

Links the identifiers the dashboard needs to pull library data (Xbox XUID,
PSN account, Steam ID) onto an existing account, and unlinks them again.
Unlinking never deletes the account.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from domain.model.errors import ConflictError, NotFoundError, UniqueViolationError, ValidationError
from domain.model.user import User
from port.user_repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Platform:
    name: str
    required: tuple[str, ...]
    optional: tuple[str, ...] = ()

    @property
    def fields(self) -> tuple[str, ...]:
        return self.required + self.optional


PLATFORMS = {
    'xbox': Platform('xbox', required=('xuid',)),
    'psn': Platform('psn', required=('psn_account_id',), optional=('psn_online_id', 'npsso')),
    'steam': Platform('steam', required=('steam_id',), optional=('persona_name', 'profile_url')),
}


def get_platform(name: str) -> Platform:
    platform = PLATFORMS.get(name.lower())
    if platform is None:
        raise ValidationError(f"Unsupported platform: {name}")
    return platform


def connect_platform(repo: UserRepository, user_id: str, platform_name: str, values: dict) -> User:
    """Set a platform's linkage fields on the user.

    Raises:
        ValidationError: unknown platform or required field missing
        ConflictError: identifier already linked to another account
    """
    platform = get_platform(platform_name)
    user = _load(repo, user_id)

    cleaned = {key: str(values[key]).strip() for key in platform.fields if values.get(key)}
    missing = [key for key in platform.required if not cleaned.get(key)]
    if missing:
        raise ValidationError(f"Missing required field(s) for {platform.name}: {', '.join(missing)}")

    changes = {**cleaned, 'updated_at': datetime.now(timezone.utc)}
    try:
        repo.update(user.id, changes)
    except UniqueViolationError as e:
        logger.warning(
            "Platform identifier already linked elsewhere",
            extra={"userId": user_id, "platform": platform.name, "field": e.field_name},
        )
        raise ConflictError(f"This {platform.name} account is already linked to another user.") from e

    for key, value in changes.items():
        setattr(user, key, value)

    logger.info("Platform connected", extra={"userId": user_id, "platform": platform.name})
    return user


def disconnect_platform(repo: UserRepository, user_id: str, platform_name: str) -> User:
    """Clear a platform's linkage fields, keeping the account.

    Raises:
        ValidationError: unknown platform, or Steam is the only way to sign in
    """
    platform = get_platform(platform_name)
    user = _load(repo, user_id)

    if platform.name == 'steam' and not (user.has_password or user.google_id):
        raise ValidationError("Steam is the only sign-in method for this account and cannot be disconnected.")

    changes = {key: None for key in platform.fields}
    changes['updated_at'] = datetime.now(timezone.utc)
    repo.update(user.id, changes)
    for key, value in changes.items():
        setattr(user, key, value)

    logger.info("Platform disconnected", extra={"userId": user_id, "platform": platform.name})
    return user


def _load(repo: UserRepository, user_id: str) -> User:
    user = repo.get_by_id(user_id)
    if not user:
        raise NotFoundError("User not found.")
    return user
