from fastapi import HTTPException, Request

from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.game_repository import MongoGameRepository
from adapter.mongodb.session_store import MongoSessionStore
from adapter.mongodb.user_repository import MongoUserRepository
from port.game_repository import GameRepository
from port.identity_provider import GoogleAuthPort, SteamAuthPort
from port.platform_api import GogLibraryPort, PsnApiPort, SteamLibraryPort, XboxLibraryPort
from port.session_store import SessionStore
from port.user_repository import UserRepository


def _get_db():
    """Get MongoDB database, raising 503 if unavailable."""
    client = get_mongodb_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return client[DATABASE_NAME]


def get_user_repo() -> UserRepository:
    return MongoUserRepository(_get_db())


def get_session_store() -> SessionStore:
    return MongoSessionStore(_get_db())


def get_game_repo() -> GameRepository:
    return MongoGameRepository(_get_db())


def get_google_auth(request: Request) -> GoogleAuthPort:
    """Google client built at startup. 503 when Google sign-in is not configured."""
    client = getattr(request.app.state, "google_auth", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Google sign-in is not configured")
    return client


def get_steam_auth(request: Request) -> SteamAuthPort:
    """Steam client built at startup. 503 when Steam sign-in is not configured."""
    client = getattr(request.app.state, "steam_auth", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Steam sign-in is not configured")
    return client


def _platform_client(request: Request, name: str, label: str):
    client = getattr(request.app.state, name, None)
    if client is None:
        raise HTTPException(status_code=503, detail=f"{label} is not configured")
    return client


def get_steam_library(request: Request) -> SteamLibraryPort:
    return _platform_client(request, "steam_library", "Steam Web API")


def get_xbox_library(request: Request) -> XboxLibraryPort:
    return _platform_client(request, "xbox_library", "Xbox API")


def get_psn_api(request: Request) -> PsnApiPort:
    return _platform_client(request, "psn_api", "PSN API")


def get_gog_library(request: Request) -> GogLibraryPort:
    return _platform_client(request, "gog_library", "GOG API")
