from pydantic import BaseModel, Field
from typing import Optional, List


class City(BaseModel):
    """A US city from the bundled city list. ``rank`` (by population) doubles as the city id."""
    city: str
    state: str
    latitude: float
    longitude: float
    population: str
    rank: str
    growth_from_2000_to_2013: Optional[str] = None


class GuessRequest(BaseModel):
    """Request for submitting a guess."""
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)
    city_id: str = Field(..., min_length=1)


class GuessResponse(BaseModel):
    """Response after submitting a guess."""
    city: City
    guess_latitude: float
    guess_longitude: float
    distance_km: float
    distance_miles: float
    score: int
    total_score: int
    num_guesses: int
    rank: int
    static_map: Optional[str] = None


class RoundResponse(BaseModel):
    """A city to guess. Only the id and image are revealed, never the coordinates."""
    city_id: str
    image: str
    map_url: str


class LeaderboardEntry(BaseModel):
    """Leaderboard entry."""
    id: int
    email: str
    rank: int
    total_score: int
    num_guesses: int

    class Config:
        from_attributes = True


class LeaderboardResponse(BaseModel):
    """Response with leaderboard."""
    entries: List[LeaderboardEntry]
    current_user_id: Optional[int] = None
