"""Auth service: identity reconciliation and password management.

Pure business logic with no HTTP dependencies. Every sign-in path
(local credentials, Google, Steam) ends in exactly one canonical User,
created or updated here. Session handling stays in the API layer, which
only needs the returned user's id.

Raises domain errors that route handlers map to HTTP status codes.
"""

import base64
import hashlib
import logging
import os
from datetime import datetime, timezone
from typing import Mapping

import bcrypt

from domain.model.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    UniqueViolationError,
    UpstreamProviderError,
    ValidationError,
)
from domain.model.identity import GoogleProfile, LocalCredentials, ProviderIdentity, SteamProfile
from domain.model.user import User, normalize_email
from port.identity_provider import GoogleAuthPort, ProviderError, SteamAuthPort
from port.user_repository import UserRepository

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))
MIN_PASSWORD_LENGTH = 8
BCRYPT_MAX_BYTES = 72

INVALID_CREDENTIALS = "Invalid email or password."
CREDENTIALS_REQUIRED = "Email and password are required."
PASSWORD_TOO_SHORT = "Password must be at least 8 characters long."
NEW_PASSWORD_TOO_SHORT = "New password must be at least 8 characters long."
INCORRECT_CURRENT_PASSWORD = "Incorrect current password."
EMAIL_TAKEN = "User already exists with this email."
GOOGLE_EMAIL_MISSING = "Email not provided by Google profile."
PROVIDER_FAILED = "Authentication failed."


def _bcrypt_input(password: str) -> bytes:
    """bcrypt accepts at most 72 bytes; longer passwords are digested first."""
    raw = password.encode("utf-8")
    if len(raw) <= BCRYPT_MAX_BYTES:
        return raw
    return base64.b64encode(hashlib.sha256(raw).digest())


def hash_password(password: str, rounds: int | None = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or BCRYPT_ROUNDS)
    return bcrypt.hashpw(_bcrypt_input(password), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Constant-time bcrypt comparison. A corrupt hash never matches."""
    try:
        return bcrypt.checkpw(_bcrypt_input(plain), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


# ── Local credentials ────────────────────────────────────────


def register(repo: UserRepository, email: str | None, password: str | None, name: str | None = None) -> User:
    """Register a new local user. Registration implies login.

    Raises:
        ValidationError: email/password missing or password too short
        ConflictError: email already registered
    """
    email = normalize_email(email)
    if not email or not password:
        raise ValidationError(CREDENTIALS_REQUIRED)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(PASSWORD_TOO_SHORT)

    if repo.find_one(email=email):
        raise ConflictError(EMAIL_TAKEN)

    user = User.new(email=email, password_hash=hash_password(password), name=name)
    user.touch_login()
    _insert(repo, user, EMAIL_TAKEN)

    logger.info("User registered", extra={"userId": user.id})
    return user


def authenticate(repo: UserRepository, email: str | None, password: str | None) -> User:
    """Authenticate a user by email and password.

    Unknown email, provider-only account and wrong password all raise the
    same error so callers cannot tell which accounts exist.

    Raises:
        ValidationError: email/password missing
        AuthenticationError: credentials rejected
    """
    return reconcile(repo, LocalCredentials(email=email, password=password))


def _login_local(repo: UserRepository, credentials: LocalCredentials) -> User:
    email = normalize_email(credentials.email)
    if not email or not credentials.password:
        raise ValidationError(CREDENTIALS_REQUIRED)

    user = repo.find_one(email=email)
    if not user or not user.has_password:
        raise AuthenticationError(INVALID_CREDENTIALS)
    if not verify_password(credentials.password, user.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS)

    _update(repo, user, last_login_at=datetime.now(timezone.utc))
    logger.info("User logged in", extra={"userId": user.id, "provider": "local"})
    return user


# ── Provider identities ──────────────────────────────────────


def reconcile(repo: UserRepository, identity: LocalCredentials | ProviderIdentity) -> User:
    """Map an authentication result onto exactly one canonical user."""
    match identity:
        case LocalCredentials():
            return _login_local(repo, identity)
        case GoogleProfile():
            return _reconcile_google(repo, identity)
        case SteamProfile():
            return _reconcile_steam(repo, identity)
        case _:
            raise TypeError(f"Unsupported identity: {type(identity).__name__}")


def _reconcile_google(repo: UserRepository, profile: GoogleProfile) -> User:
    user = repo.find_one(google_id=profile.provider_user_id)
    if user:
        # Last login wins: the fresh profile replaces what we had.
        changes = {
            'name': profile.display_name,
            'avatar': profile.avatar_url,
            'last_login_at': datetime.now(timezone.utc),
        }
        if profile.primary_email:
            changes['email'] = profile.primary_email
        _update(repo, user, **changes)
        logger.info("Google user updated", extra={"userId": user.id})
        return user

    email = profile.primary_email
    if not email:
        logger.error("Google profile did not return an email", extra={"googleId": profile.provider_user_id})
        raise ValidationError(GOOGLE_EMAIL_MISSING)

    user = repo.find_one(email=email)
    if user:
        _update(
            repo,
            user,
            google_id=profile.provider_user_id,
            last_login_at=datetime.now(timezone.utc),
            **_present(name=profile.display_name, avatar=profile.avatar_url),
        )
        logger.info("Existing user linked with Google", extra={"userId": user.id})
        return user

    user = User.new(
        google_id=profile.provider_user_id,
        email=email,
        name=profile.display_name,
        avatar=profile.avatar_url,
    )
    user.touch_login()
    _insert(repo, user, "An account already exists for this Google identity.")
    logger.info("New user created via Google", extra={"userId": user.id})
    return user


def _reconcile_steam(repo: UserRepository, profile: SteamProfile) -> User:
    # Steam carries no email, so it only ever matches on steam_id.
    user = repo.find_one(steam_id=profile.steam_id64)
    if user:
        _update(
            repo,
            user,
            last_login_at=datetime.now(timezone.utc),
            **_present(
                persona_name=profile.persona_name,
                avatar=profile.avatar_url,
                profile_url=profile.profile_url,
            ),
        )
        logger.info("Steam user updated", extra={"userId": user.id, "steamId": user.steam_id})
        return user

    user = User.new(
        steam_id=profile.steam_id64,
        persona_name=profile.persona_name,
        avatar=profile.avatar_url,
        profile_url=profile.profile_url,
    )
    user.touch_login()
    _insert(repo, user, "An account already exists for this Steam identity.")
    logger.info("New user created via Steam", extra={"userId": user.id, "steamId": user.steam_id})
    return user


async def login_with_google(repo: UserRepository, client: GoogleAuthPort, code: str) -> User:
    """Finish a Google callback: exchange the code, then reconcile.

    Raises:
        UpstreamProviderError: the Google handshake failed
    """
    try:
        profile = await client.fetch_profile(code)
    except ProviderError as e:
        logger.error("Google authentication failed", extra={"error": e.message})
        raise UpstreamProviderError(PROVIDER_FAILED) from e
    return reconcile(repo, profile)


async def login_with_steam(repo: UserRepository, client: SteamAuthPort, params: Mapping[str, str]) -> User:
    """Finish a Steam callback: verify the assertion, then reconcile.

    Raises:
        UpstreamProviderError: the Steam verification failed
    """
    try:
        profile = await client.verify(params)
    except ProviderError as e:
        logger.error("Steam authentication failed", extra={"error": e.message})
        raise UpstreamProviderError(PROVIDER_FAILED) from e
    return reconcile(repo, profile)


# ── Session bookkeeping & password ───────────────────────────


def record_logout(repo: UserRepository, user: User) -> None:
    """Stamp last_logout_at. Best effort: a failure here never blocks logout."""
    try:
        now = datetime.now(timezone.utc)
        repo.update(user.id, {'last_logout_at': now})
        user.last_logout_at = now
        logger.info("Recorded logout", extra={"userId": user.id})
    except Exception as e:
        logger.error("Failed to update last_logout_at on logout", extra={"userId": user.id, "error": str(e)})


def change_password(
    repo: UserRepository,
    user_id: str,
    new_password: str | None,
    current_password: str | None = None,
) -> User:
    """Change, or set for the first time, a user's local password.

    Raises:
        ValidationError: new password too short
        AuthenticationError: current password missing or wrong
        NotFoundError: the session's user no longer exists
    """
    if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(NEW_PASSWORD_TOO_SHORT)

    user = repo.get_by_id(user_id)
    if not user:
        logger.error("User not found during password change", extra={"userId": user_id})
        raise NotFoundError("User not found.")

    if user.has_password:
        if not current_password or not verify_password(current_password, user.password_hash):
            raise AuthenticationError(INCORRECT_CURRENT_PASSWORD)
    elif current_password:
        logger.warning("currentPassword supplied but no local password is set", extra={"userId": user_id})

    _update(repo, user, password_hash=hash_password(new_password))
    logger.info("Password changed", extra={"userId": user_id})
    return user


# ── Store helpers ────────────────────────────────────────────


def _insert(repo: UserRepository, user: User, conflict_message: str) -> None:
    """Create a user, turning a store-level duplicate into ConflictError.

    A concurrent sign-in can win the race between our lookup and this
    insert; the unique index is what catches it.
    """
    try:
        repo.create(user)
    except UniqueViolationError as e:
        logger.warning("User creation lost a uniqueness race", extra={"field": e.field_name})
        raise ConflictError(EMAIL_TAKEN if e.field_name == "email" else conflict_message) from e


def _present(**values) -> dict:
    """Drop empty values so they never overwrite stored ones."""
    return {key: value for key, value in values.items() if value}


def _update(repo: UserRepository, user: User, **changes) -> None:
    """Persist only the given fields (and updated_at), then mirror them on user.

    Fields not named keep whatever the store currently holds.
    """
    changes['updated_at'] = datetime.now(timezone.utc)
    try:
        repo.update(user.id, changes)
    except UniqueViolationError as e:
        logger.warning("User update collided with another account", extra={"userId": user.id, "field": e.field_name})
        raise ConflictError(f"Another account already uses this {e.field_name or 'identity'}.") from e
    for key, value in changes.items():
        setattr(user, key, value)
