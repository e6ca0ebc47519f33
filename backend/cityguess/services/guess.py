import logging
from typing import Optional

from ..models.game import GuessRequest, GuessResponse
from .auth import CredentialVerifier
from .cities import CityCatalogue
from .rank_store import RankStore
from .scoring import haversine_distance, calculate_score, km_to_miles

logger = logging.getLogger(__name__)


class GuessOrchestrator:
    """Turns a guess into a committed score: verify, locate, measure, score, store."""

    def __init__(
        self,
        verifier: CredentialVerifier,
        cities: CityCatalogue,
        rank_store: RankStore,
        max_points: int = 5000,
        decay_km: float = 2000.0
    ):
        self.verifier = verifier
        self.cities = cities
        self.rank_store = rank_store
        self.max_points = max_points
        self.decay_km = decay_km

    async def submit(self, token: Optional[str], guess: GuessRequest) -> GuessResponse:
        """
        Score a guess for the session owner.

        Nothing is written unless every step before the store succeeds, and
        the response is only built once the score is committed.

        Raises:
            InvalidToken: no valid session, checked before any other work
            CityNotFound: unknown city id
            UserNotFound, InternalInconsistency, StorageUnavailable: from RankStore
        """
        claims = self.verifier.verify_required(token)
        city = self.cities.resolve(guess.city_id)

        distance = haversine_distance(guess.lat, guess.lng, city.latitude, city.longitude)
        score = calculate_score(distance, self.max_points, self.decay_km)

        entry = await self.rank_store.apply_score(claims.id, score)

        logger.info(
            "User %s guessed %.3f km from %s (city %s) for %d points",
            claims.id, distance, city.city, guess.city_id, score
        )
        return GuessResponse(
            city=city,
            guess_latitude=guess.lat,
            guess_longitude=guess.lng,
            distance_km=round(distance, 3),
            distance_miles=round(km_to_miles(distance), 3),
            score=score,
            total_score=entry.total_score,
            num_guesses=entry.num_guesses,
            rank=entry.rank
        )
