"""
Running scores and the global rank table.

Every write goes through ``RankStore.apply_score``, which adds a score to one
user and re-ranks every user inside a single transaction. Writers are also
funnelled through one lock, so two re-rank passes can never interleave and a
reader always sees the scores and ranks of the same committed state.
"""

import asyncio
import logging
from typing import List

from sqlalchemy import select, update, func, distinct
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import aliased

from ..database.models import User, UserRank
from ..exceptions import InternalInconsistency, StorageUnavailable, UserNotFound
from ..models.game import LeaderboardEntry

logger = logging.getLogger(__name__)


def _entry_query():
    return (
        select(
            UserRank.id,
            User.email,
            UserRank.rank,
            UserRank.total_score,
            UserRank.num_guesses
        )
        .join(User, User.id == UserRank.id)
    )


def score_update_statement(user_id: int, score_delta: int):
    """UPDATE adding one scored guess to a single user's row."""
    return (
        update(UserRank)
        .where(UserRank.id == user_id)
        .values(
            total_score=UserRank.total_score + score_delta,
            num_guesses=UserRank.num_guesses + 1
        )
        .execution_options(synchronize_session=False)
    )


def dense_rank_statement():
    """
    UPDATE that sets every guessed row's rank to its dense rank by total_score.

    A row's dense rank is the number of distinct scores, among ranked rows,
    that are greater than or equal to its own. Rows without a guess keep rank 0.
    """
    higher = aliased(UserRank)
    dense_rank = (
        select(func.count(distinct(higher.total_score)))
        .where(
            higher.num_guesses > 0,
            higher.total_score >= UserRank.total_score
        )
        .scalar_subquery()
    )
    return (
        update(UserRank)
        .where(UserRank.num_guesses > 0)
        .values(rank=dense_rank)
        .execution_options(synchronize_session=False)
    )


class RankStore:
    """Owns every mutation of the user_ranks table."""

    def __init__(self, session_factory: async_sessionmaker, read_timeout_seconds: float = 5.0):
        self._session_factory = session_factory
        self._read_timeout_seconds = read_timeout_seconds
        self._write_lock = asyncio.Lock()

    async def apply_score(self, user_id: int, score_delta: int) -> LeaderboardEntry:
        """
        Add ``score_delta`` to a user's total, count one guess and re-rank everyone.

        The update and the re-rank commit together or not at all. Calling this
        twice scores twice.

        Returns:
            The user's row as committed

        Raises:
            UserNotFound: no rank row exists for ``user_id``
            InternalInconsistency: the update touched other than exactly one row
            StorageUnavailable: the database could not be reached or the
                transaction failed; nothing was applied
        """
        if score_delta < 0:
            raise ValueError("score_delta must be non-negative")

        async with self._write_lock:
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        found = await session.execute(
                            select(UserRank.id).where(UserRank.id == user_id)
                        )
                        if found.scalar_one_or_none() is None:
                            raise UserNotFound()

                        result = await session.execute(score_update_statement(user_id, score_delta))
                        if result.rowcount != 1:
                            logger.error(
                                "Score update for user %s touched %s rows, rolling back",
                                user_id, result.rowcount
                            )
                            raise InternalInconsistency()

                        await session.execute(dense_rank_statement())

                        entry = await self._fetch_entry(session, user_id)
            except IntegrityError as e:
                logger.error("Integrity error while scoring user %s: %s", user_id, e)
                raise InternalInconsistency() from e
            except SQLAlchemyError as e:
                logger.warning("Storage failure while scoring user %s: %s", user_id, e)
                raise StorageUnavailable() from e

        logger.info(
            "User %s scored %s, total %s over %s guesses, rank %s",
            user_id, score_delta, entry.total_score, entry.num_guesses, entry.rank
        )
        return entry

    async def get_top(self, n: int) -> List[LeaderboardEntry]:
        """
        Get at most ``n`` users ranked 1..n, best first, ties by user id.

        Raises:
            StorageUnavailable: the read failed or did not finish in time
        """
        if n <= 0:
            return []

        try:
            return await asyncio.wait_for(self._read_top(n), timeout=self._read_timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.warning("Leaderboard read timed out after %ss", self._read_timeout_seconds)
            raise StorageUnavailable("Leaderboard is busy, please retry.") from e
        except SQLAlchemyError as e:
            logger.warning("Storage failure while reading leaderboard: %s", e)
            raise StorageUnavailable() from e

    async def get_rank(self, user_id: int) -> LeaderboardEntry:
        """Get a single user's row, ranked or not."""
        try:
            async with self._session_factory() as session:
                entry = await self._fetch_entry(session, user_id)
        except SQLAlchemyError as e:
            raise StorageUnavailable() from e
        return entry

    async def _read_top(self, n: int) -> List[LeaderboardEntry]:
        async with self._session_factory() as session:
            result = await session.execute(
                _entry_query()
                .where(UserRank.rank > 0, UserRank.rank <= n)
                .order_by(UserRank.rank, UserRank.id)
                .limit(n)
            )
            return [LeaderboardEntry(**row) for row in result.mappings()]

    @staticmethod
    async def _fetch_entry(session: AsyncSession, user_id: int) -> LeaderboardEntry:
        result = await session.execute(_entry_query().where(UserRank.id == user_id))
        row = result.mappings().one_or_none()
        if row is None:
            raise UserNotFound()
        return LeaderboardEntry(**row)
