"""Game library domain models."""

from dataclasses import dataclass, field
from datetime import datetime


TROPHY_TIERS = ('platinum', 'gold', 'silver', 'bronze')


@dataclass(frozen=True)
class TrophyCounts:
    platinum: int = 0
    gold: int = 0
    silver: int = 0
    bronze: int = 0

    @property
    def total(self) -> int:
        return self.platinum + self.gold + self.silver + self.bronze

    @classmethod
    def from_dict(cls, data: dict | None) -> 'TrophyCounts':
        data = data or {}
        return cls(**{tier: int(data.get(tier) or 0) for tier in TROPHY_TIERS})


@dataclass
class PsnGame:
    """A PlayStation title with the user's trophy progress, as stored."""
    id: str
    user_id: str
    np_communication_id: str
    trophy_title_name: str
    trophy_title_icon_url: str | None = None
    trophy_title_platform: str | None = None
    progress: int = 0
    earned_trophies: TrophyCounts = field(default_factory=TrophyCounts)
    last_updated_from_psn: datetime | None = None
    updated_at: datetime | None = None
    platform: str = 'PSN'


@dataclass(frozen=True)
class LibraryGame:
    """Platform-neutral view of an owned game for the dashboard."""
    id: str
    title: str
    platform: str
    cover_image: str | None = None
    progress: int = 0
    earned_trophies: TrophyCounts | None = None
    playtime: int = 0
    last_played: datetime | None = None
    achievements_unlocked: int = 0
    achievements_total: int = 0
    status: str = 'owned'


@dataclass(frozen=True)
class PsnTrophyTitle:
    """One entry of a PSN trophy title list, as fetched."""
    np_communication_id: str
    trophy_title_name: str
    trophy_title_icon_url: str | None = None
    trophy_title_platform: str | None = None
    progress: int = 0
    earned_trophies: TrophyCounts = field(default_factory=TrophyCounts)
    has_trophy_groups: bool = False


@dataclass
class PsnTrophySummary:
    """A user's overall PSN trophy level. One per user."""
    psn_account_id: str
    trophy_level: int = 0
    progress: int = 0
    tier: int = 0
    earned_trophies: TrophyCounts = field(default_factory=TrophyCounts)
    user_id: str | None = None
    last_updated_from_psn: datetime | None = None


@dataclass(frozen=True)
class PsnTokens:
    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    refresh_token_expires_in: int | None = None
    token_type: str | None = None
    scope: str | None = None


@dataclass(frozen=True)
class AchievementCounts:
    unlocked: int = 0
    total: int = 0


@dataclass
class SteamGame:
    """An owned Steam app with playtime (minutes) and achievement counts."""
    steam_id: str
    app_id: int
    name: str
    playtime_forever: int = 0
    img_icon_url: str | None = None
    img_logo_url: str | None = None
    rtime_last_played: datetime | None = None
    achievements: AchievementCounts = field(default_factory=AchievementCounts)
    last_updated: datetime | None = None


@dataclass
class XboxGame:
    """An Xbox title with achievement and gamerscore progress."""
    xuid: str
    title_id: str
    name: str
    display_image: str | None = None
    current_achievements: int = 0
    total_achievements: int = 0
    current_gamerscore: int = 0
    total_gamerscore: int = 0
    last_updated: datetime | None = None


@dataclass(frozen=True)
class GogGame:
    """A GOG title. GOG exposes neither playtime nor achievements."""
    app_id: int
    name: str
    img_icon_url: str | None = None
