"""Normalized authentication results handed to the reconciliation service.

Provider adapters do the network and signature work and return one of
these. The service only ever sees already-verified claims.
"""

from dataclasses import dataclass, field

from domain.model.user import normalize_email


@dataclass(frozen=True)
class LocalCredentials:
    email: str | None
    password: str | None


@dataclass(frozen=True)
class GoogleProfile:
    provider_user_id: str
    display_name: str | None = None
    emails: tuple[str, ...] = field(default_factory=tuple)
    avatar_url: str | None = None

    @property
    def primary_email(self) -> str | None:
        if not self.emails:
            return None
        return normalize_email(self.emails[0])


@dataclass(frozen=True)
class SteamProfile:
    steam_id64: str
    persona_name: str | None = None
    avatar_url: str | None = None
    profile_url: str | None = None


ProviderIdentity = GoogleProfile | SteamProfile
