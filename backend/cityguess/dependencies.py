"""
FastAPI dependencies.

Long-lived services are built once by ``install_services`` and kept on
``app.state``. Request handlers reach them through the ``get_*`` functions
below, which tests can swap out with ``app.dependency_overrides``.
"""

from typing import Optional

from fastapi import Depends, FastAPI, Request

from .config import Settings
from .database.session import AsyncSessionLocal
from .models.user import Claims
from .services.auth import CredentialVerifier, Keys
from .services.cities import CityCatalogue
from .services.guess import GuessOrchestrator
from .services.leaderboard import LeaderboardReader
from .services.maps import StaticMapClient
from .services.rank_store import RankStore


def install_services(app: FastAPI, settings: Settings) -> None:
    """Build the process-wide services from settings and attach them to the app."""
    app.state.settings = settings
    app.state.verifier = CredentialVerifier(
        Keys(settings.JWT_SECRET, settings.ALGORITHM),
        token_lifetime_seconds=settings.TOKEN_EXPIRE_HOURS * 60 * 60
    )
    app.state.cities = CityCatalogue.from_file(settings.CITY_FILE)
    app.state.rank_store = RankStore(AsyncSessionLocal, settings.LEADERBOARD_TIMEOUT_SECONDS)
    app.state.map_client = StaticMapClient(settings.GOOGLE_KEY)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_verifier(request: Request) -> CredentialVerifier:
    return request.app.state.verifier


def get_city_catalogue(request: Request) -> CityCatalogue:
    return request.app.state.cities


def get_rank_store(request: Request) -> RankStore:
    return request.app.state.rank_store


def get_map_client(request: Request) -> StaticMapClient:
    return request.app.state.map_client


def get_session_token(request: Request) -> Optional[str]:
    """Raw ``jwt`` cookie value, if the request carries one."""
    return CredentialVerifier.extract_token(request.headers.get("cookie"))


def get_current_claims(
    token: Optional[str] = Depends(get_session_token),
    verifier: CredentialVerifier = Depends(get_verifier)
) -> Claims:
    """Claims of the logged-in user. Rejects the request with 401 otherwise."""
    return verifier.verify_required(token)


def get_optional_claims(
    token: Optional[str] = Depends(get_session_token),
    verifier: CredentialVerifier = Depends(get_verifier)
) -> Optional[Claims]:
    """Claims of the logged-in user, or None for anonymous visitors."""
    return verifier.verify_optional(token)


def get_guess_orchestrator(
    settings: Settings = Depends(get_app_settings),
    verifier: CredentialVerifier = Depends(get_verifier),
    cities: CityCatalogue = Depends(get_city_catalogue),
    rank_store: RankStore = Depends(get_rank_store)
) -> GuessOrchestrator:
    return GuessOrchestrator(
        verifier,
        cities,
        rank_store,
        max_points=settings.MAX_POINTS,
        decay_km=settings.SCORE_DECAY_KM
    )


def get_leaderboard_reader(
    settings: Settings = Depends(get_app_settings),
    rank_store: RankStore = Depends(get_rank_store)
) -> LeaderboardReader:
    return LeaderboardReader(rank_store, max_size=settings.LEADERBOARD_SIZE)
