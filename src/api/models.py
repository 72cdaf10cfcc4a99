"""Pydantic models for API request/response."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from domain.model.game import GogGame, LibraryGame, SteamGame, XboxGame
from domain.model.user import User


class RegisterRequest(BaseModel):
    """Request model for user registration.

    Fields are optional here so that missing values reach the auth service
    and come back with its message instead of a schema error.
    """
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(BaseModel):
    """Request model for user login."""
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    """Request model for changing (or first setting) a local password."""
    model_config = ConfigDict(populate_by_name=True)

    current_password: Optional[str] = Field(None, alias="currentPassword")
    new_password: Optional[str] = Field(None, alias="newPassword")


class ConnectPlatformRequest(BaseModel):
    """Linkage identifiers for one platform. Which ones apply depends on the platform."""
    xuid: Optional[str] = None
    psn_account_id: Optional[str] = None
    psn_online_id: Optional[str] = None
    npsso: Optional[str] = None
    steam_id: Optional[str] = None
    persona_name: Optional[str] = None
    profile_url: Optional[str] = None


class UserResponse(BaseModel):
    """Public profile of a user. Never carries the password hash."""
    id: str = Field(..., description="User ID")
    email: Optional[str] = None
    name: Optional[str] = Field(None, description="Display name, falling back to the Steam persona")
    google_id: Optional[str] = None
    steam_id: Optional[str] = None
    xuid: Optional[str] = None
    psn_account_id: Optional[str] = None
    psn_online_id: Optional[str] = None
    avatar: Optional[str] = None
    profile_url: Optional[str] = None
    created_at: datetime
    last_login_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(**user.to_public())


class AuthResponse(BaseModel):
    """Response model for register/login."""
    message: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


class TrophyCountsResponse(BaseModel):
    platinum: int = 0
    gold: int = 0
    silver: int = 0
    bronze: int = 0


class AchievementCountsResponse(BaseModel):
    unlocked: int = 0
    total: int = 0


class LibraryGameResponse(BaseModel):
    """One entry of the aggregated game list."""
    id: str
    title: str
    platform: str
    cover_image: Optional[str] = None
    progress: int = 0
    earned_trophies: Optional[TrophyCountsResponse] = None
    playtime: int = 0
    last_played: Optional[datetime] = None
    achievements_unlocked: int = 0
    achievements_total: int = 0
    status: str = "owned"

    @classmethod
    def from_game(cls, game: LibraryGame) -> "LibraryGameResponse":
        trophies = None
        if game.earned_trophies is not None:
            trophies = TrophyCountsResponse(
                platinum=game.earned_trophies.platinum,
                gold=game.earned_trophies.gold,
                silver=game.earned_trophies.silver,
                bronze=game.earned_trophies.bronze,
            )
        return cls(
            id=game.id,
            title=game.title,
            platform=game.platform,
            cover_image=game.cover_image,
            progress=game.progress,
            earned_trophies=trophies,
            playtime=game.playtime,
            last_played=game.last_played,
            achievements_unlocked=game.achievements_unlocked,
            achievements_total=game.achievements_total,
            status=game.status,
        )


class SteamGameResponse(BaseModel):
    app_id: int
    name: str
    playtime_forever: int = Field(0, description="Minutes played")
    img_icon_url: Optional[str] = None
    img_logo_url: Optional[str] = None
    last_played: Optional[datetime] = None
    achievements: AchievementCountsResponse

    @classmethod
    def from_game(cls, game: SteamGame) -> "SteamGameResponse":
        return cls(
            app_id=game.app_id,
            name=game.name,
            playtime_forever=game.playtime_forever,
            img_icon_url=game.img_icon_url,
            img_logo_url=game.img_logo_url,
            last_played=game.rtime_last_played,
            achievements=AchievementCountsResponse(
                unlocked=game.achievements.unlocked, total=game.achievements.total,
            ),
        )


class XboxGameResponse(BaseModel):
    title_id: str
    name: str
    display_image: Optional[str] = None
    current_achievements: int = 0
    total_achievements: int = 0
    current_gamerscore: int = 0
    total_gamerscore: int = 0

    @classmethod
    def from_game(cls, game: XboxGame) -> "XboxGameResponse":
        return cls(
            title_id=game.title_id,
            name=game.name,
            display_image=game.display_image,
            current_achievements=game.current_achievements,
            total_achievements=game.total_achievements,
            current_gamerscore=game.current_gamerscore,
            total_gamerscore=game.total_gamerscore,
        )


class GogGameResponse(BaseModel):
    """GOG has no playtime or achievement data; both are always zero."""
    app_id: int
    name: str
    img_icon_url: Optional[str] = None
    playtime_forever: int = 0
    achievements: AchievementCountsResponse = Field(default_factory=AchievementCountsResponse)

    @classmethod
    def from_game(cls, game: GogGame) -> "GogGameResponse":
        return cls(app_id=game.app_id, name=game.name, img_icon_url=game.img_icon_url)


class PsnInitiateAuthRequest(BaseModel):
    npsso: Optional[str] = None


class PsnExchangeCodeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_code: Optional[str] = Field(None, alias="accessCode")


class PsnAccessCodeResponse(BaseModel):
    message: str
    access_code: str


class PsnTokensResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    refresh_token_expires_in: Optional[int] = None
    token_type: Optional[str] = None
    scope: Optional[str] = None


class PsnAuthorizationResponse(BaseModel):
    message: str
    authorization: PsnTokensResponse


class PsnGamesSyncResponse(BaseModel):
    message: str
    games: list[LibraryGameResponse]


class PsnTrophySummaryResponse(BaseModel):
    psn_account_id: str
    trophy_level: int
    progress: int
    tier: int
    earned_trophies: TrophyCountsResponse
    last_updated_from_psn: Optional[datetime] = None


class PsnTrophySummarySyncResponse(BaseModel):
    message: str
    summary: PsnTrophySummaryResponse
