"""FastAPI application entry point."""

import os
import sys
import logging
import tomllib
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load environment variables from .env file
# Must be called before importing modules that read env vars (security, routes)
load_dotenv()

# main.py is at src/api/main.py; src is two levels up
_src_path = Path(__file__).parent.parent
sys.path.insert(0, str(_src_path))

from api.routes import auth, user, health, steam, xbox, psn, gog
from api.error_handlers import register_error_handlers
from adapter.external.gog import GogClient
from adapter.external.google_oauth import GoogleOAuthClient, GoogleOAuthConfig
from adapter.external.psn import PsnClient
from adapter.external.steam_openid import SteamOpenIDClient, SteamOpenIDConfig
from adapter.external.steam_web_api import SteamWebApiClient
from adapter.external.xbox_live import XboxLiveClient
from utils.logging import setup_structured_logging
from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.indexes import ensure_all_indexes

setup_structured_logging()

logger = logging.getLogger(__name__)

# Read version from pyproject.toml (single source of truth)
_project_root = _src_path.parent
with open(_project_root / "pyproject.toml", "rb") as f:
    VERSION = tomllib.load(f)["project"]["version"]

SERVICE_NAME = "GameVault API"


def configure_identity_providers(app: FastAPI) -> None:
    """Build the Google and Steam clients once and hang them on app.state.

    A provider without configuration is left as None; its routes answer 503.
    """
    google_config = GoogleOAuthConfig.from_env()
    if google_config:
        app.state.google_auth = GoogleOAuthClient(google_config)
    else:
        app.state.google_auth = None
        logger.warning("GOOGLE_CLIENT_ID or GOOGLE_CLIENT_SECRET is not defined. Google sign-in disabled.")

    steam_config = SteamOpenIDConfig.from_env()
    if steam_config:
        app.state.steam_auth = SteamOpenIDClient(steam_config)
    else:
        app.state.steam_auth = None
        logger.warning("STEAM_API_KEY is not defined. Steam sign-in disabled.")


def configure_platform_apis(app: FastAPI) -> None:
    """Build the game-data clients. Steam and Xbox need API keys; without one the routes answer 503."""
    steam_api_key = os.getenv("STEAM_API_KEY")
    app.state.steam_library = SteamWebApiClient(steam_api_key) if steam_api_key else None

    app.state.xbox_library = XboxLiveClient.from_env()
    if app.state.xbox_library is None:
        logger.warning("XBL_API_KEY is not defined. Xbox game lookups disabled.")

    app.state.psn_api = PsnClient()
    app.state.gog_library = GogClient()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown logic."""
    client = get_mongodb_client()
    if client:
        db = client[DATABASE_NAME]
        if ensure_all_indexes(db):
            logger.info("MongoDB indexes verified/created successfully")
        else:
            logger.warning("Failed to create some MongoDB indexes")
    else:
        logger.warning("MongoDB unavailable, skipping index creation")

    configure_identity_providers(app)
    configure_platform_apis(app)

    yield


app = FastAPI(
    title=SERVICE_NAME,
    description="API service for GameVault - sign-in, profile and aggregated game library",
    version=VERSION,
    lifespan=lifespan,
)

# Session cookies need credentials, and browsers refuse credentials with a
# wildcard origin, so "*" falls back to no credentials.
cors_origins_env = os.getenv("CORS_ORIGINS", "http://localhost:5173")

if cors_origins_env == "*":
    cors_origins = ["*"]
    allow_credentials = False
    logger.warning(
        "CORS configured with wildcard origin ('*'); session cookies will not be sent cross-origin. "
        "Set CORS_ORIGINS to specific domains (e.g., 'https://app.example.com')"
    )
else:
    cors_origins = [origin.strip() for origin in cors_origins_env.split(",")]
    allow_credentials = True
    logger.info(f"CORS configured with specific origins: {cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(auth.router)
app.include_router(user.router)
app.include_router(steam.router)
app.include_router(xbox.router)
app.include_router(psn.router)
app.include_router(gog.router)
app.include_router(health.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    # Application logs go through structured logging; uvicorn's access log is redundant
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=port,
        access_log=False
    )
