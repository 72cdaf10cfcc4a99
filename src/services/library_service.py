"""Game library service: the aggregated, platform-neutral game list."""

import logging

from domain.model.errors import PermissionDeniedError
from domain.model.game import LibraryGame, PsnGame, SteamGame, XboxGame
from port.game_repository import GameRepository

logger = logging.getLogger(__name__)

STEAM_IMAGE_URL = "https://media.steampowered.com/steamcommunity/public/images/apps/{app_id}/{image_hash}.jpg"


def psn_to_library_game(game: PsnGame) -> LibraryGame:
    """PSN titles track trophies, not playtime or gamerscore."""
    return LibraryGame(
        id=game.id,
        title=game.trophy_title_name,
        platform=game.platform,
        cover_image=game.trophy_title_icon_url,
        progress=game.progress,
        earned_trophies=game.earned_trophies,
        last_played=game.last_updated_from_psn or game.updated_at,
        achievements_unlocked=game.earned_trophies.total,
    )


def steam_to_library_game(game: SteamGame) -> LibraryGame:
    image_hash = game.img_logo_url or game.img_icon_url
    total = game.achievements.total
    return LibraryGame(
        id=f"steam:{game.app_id}",
        title=game.name,
        platform='Steam',
        cover_image=STEAM_IMAGE_URL.format(app_id=game.app_id, image_hash=image_hash) if image_hash else None,
        progress=round(100 * game.achievements.unlocked / total) if total else 0,
        playtime=game.playtime_forever,
        last_played=game.rtime_last_played,
        achievements_unlocked=game.achievements.unlocked,
        achievements_total=total,
    )


def xbox_to_library_game(game: XboxGame) -> LibraryGame:
    total = game.total_achievements
    return LibraryGame(
        id=f"xbox:{game.title_id}",
        title=game.name,
        platform='Xbox',
        cover_image=game.display_image,
        progress=round(100 * game.current_achievements / total) if total else 0,
        achievements_unlocked=game.current_achievements,
        achievements_total=total,
    )


def get_user_games(
    repo: GameRepository,
    requester_id: str,
    user_id: str,
    steam_id: str | None = None,
    xuid: str | None = None,
) -> list[LibraryGame]:
    """Return every stored game for user_id, sorted by platform then title.

    Steam and Xbox games come from the cache of the linked steam_id / xuid,
    whatever their age.

    Raises:
        PermissionDeniedError: requester asked for someone else's library
    """
    if requester_id != user_id:
        logger.warning(
            "Attempt to read another user's games",
            extra={"requesterId": requester_id, "userId": user_id},
        )
        raise PermissionDeniedError("Forbidden: You can only access your own games.")

    games = [psn_to_library_game(g) for g in repo.list_psn_games(user_id)]
    if steam_id:
        games.extend(steam_to_library_game(g) for g in repo.list_steam_games(steam_id))
    if xuid:
        games.extend(xbox_to_library_game(g) for g in repo.list_xbox_games(xuid))
    games.sort(key=lambda g: (g.platform, g.title))

    logger.info("Fetched games from database", extra={"userId": user_id, "count": len(games)})
    return games
