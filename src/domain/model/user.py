import uuid
from dataclasses import dataclass, fields
from datetime import datetime, timezone


# Identity anchors: each is unique across users when present.
UNIQUE_FIELDS = ('email', 'google_id', 'steam_id', 'xuid', 'psn_account_id')

# Never leaves the backend.
PRIVATE_FIELDS = ('password_hash', 'npsso')


def normalize_email(email: str | None) -> str | None:
    """Lowercase and trim an email address. Blank input becomes None."""
    if email is None:
        return None
    email = email.strip().lower()
    return email or None


@dataclass
class User:
    """Domain model representing a user.

    A user is anchored by at least one of: a local email/password, a Google
    account, or a Steam account. Platform linkage fields (xuid, psn_*) are
    set from the connections screen, not by sign-in.
    """
    id: str
    created_at: datetime
    updated_at: datetime
    email: str | None = None
    password_hash: str | None = None
    google_id: str | None = None
    steam_id: str | None = None
    xuid: str | None = None
    psn_account_id: str | None = None
    psn_online_id: str | None = None
    npsso: str | None = None
    name: str | None = None
    persona_name: str | None = None
    avatar: str | None = None
    profile_url: str | None = None
    last_login_at: datetime | None = None
    last_logout_at: datetime | None = None

    @staticmethod
    def new(**attrs) -> 'User':
        """Build an unsaved user with a fresh id and timestamps."""
        now = datetime.now(timezone.utc)
        attrs.setdefault('id', uuid.uuid4().hex)
        attrs.setdefault('created_at', now)
        attrs.setdefault('updated_at', now)
        if 'email' in attrs:
            attrs['email'] = normalize_email(attrs['email'])
        return User(**attrs)

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    @property
    def display_name(self) -> str | None:
        return self.name or self.persona_name

    def touch_login(self) -> None:
        now = datetime.now(timezone.utc)
        self.last_login_at = now
        self.updated_at = now

    def to_public(self) -> dict:
        """Profile fields safe to hand to the client."""
        return {
            'id': self.id,
            'email': self.email,
            'name': self.display_name,
            'google_id': self.google_id,
            'steam_id': self.steam_id,
            'xuid': self.xuid,
            'psn_account_id': self.psn_account_id,
            'psn_online_id': self.psn_online_id,
            'avatar': self.avatar,
            'profile_url': self.profile_url,
            'created_at': self.created_at,
            'last_login_at': self.last_login_at,
        }


USER_FIELDS = tuple(f.name for f in fields(User))
