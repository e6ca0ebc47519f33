import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import (
    get_city_catalogue, get_current_claims, get_guess_orchestrator,
    get_leaderboard_reader, get_map_client, get_optional_claims,
    get_rank_store, get_session_token
)
from ..models.game import GuessRequest, GuessResponse, LeaderboardEntry, LeaderboardResponse, RoundResponse
from ..models.user import Claims
from ..services.cities import CityCatalogue
from ..services.guess import GuessOrchestrator
from ..services.leaderboard import LeaderboardReader
from ..services.maps import StaticMapClient
from ..services.rank_store import RankStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/game", tags=["Game"])


@router.get("/round", response_model=RoundResponse)
async def get_round(
    current_user: Claims = Depends(get_current_claims),
    cities: CityCatalogue = Depends(get_city_catalogue),
    map_client: StaticMapClient = Depends(get_map_client)
):
    """Pick a random city and return its satellite image (without coordinates)."""
    city = cities.random_city()
    image = await map_client.get_city_image(city)

    return RoundResponse(
        city_id=city.rank,
        image=image,
        map_url=map_client.interactive_map_url()
    )


@router.post("/guess", response_model=GuessResponse)
async def submit_guess(
    guess: GuessRequest,
    token: Optional[str] = Depends(get_session_token),
    orchestrator: GuessOrchestrator = Depends(get_guess_orchestrator),
    map_client: StaticMapClient = Depends(get_map_client)
):
    """Submit a guess for a city."""
    result = await orchestrator.submit(token, guess)

    # The score is already committed, a missing picture must not undo that
    try:
        result.static_map = await map_client.get_guess_map(result.city, guess.lat, guess.lng)
    except HTTPException as e:
        logger.warning("Guess map unavailable: %s", e.detail)

    return result


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    limit: Optional[int] = None,
    claims: Optional[Claims] = Depends(get_optional_claims),
    reader: LeaderboardReader = Depends(get_leaderboard_reader)
):
    """Get the top players by total score."""
    return await reader.read(limit, claims)


@router.get("/me", response_model=LeaderboardEntry)
async def get_my_rank(
    current_user: Claims = Depends(get_current_claims),
    rank_store: RankStore = Depends(get_rank_store)
):
    """Get the current user's score and rank."""
    return await rank_store.get_rank(current_user.id)
