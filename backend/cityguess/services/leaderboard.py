from typing import Optional

from ..models.game import LeaderboardResponse
from ..models.user import Claims
from .rank_store import RankStore


class LeaderboardReader:
    """Read-only view of the rank table, capped at ``max_size`` rows."""

    def __init__(self, rank_store: RankStore, max_size: int = 100):
        self.rank_store = rank_store
        self.max_size = max_size

    async def read(self, limit: Optional[int] = None, claims: Optional[Claims] = None) -> LeaderboardResponse:
        """Get the top ``limit`` players. A logged-in caller's id is echoed back for highlighting."""
        if limit is None:
            limit = self.max_size
        # get_top answers [] for a limit of 0 or less
        limit = min(limit, self.max_size)

        entries = await self.rank_store.get_top(limit)
        return LeaderboardResponse(
            entries=entries,
            current_user_id=claims.id if claims else None
        )
