from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from .session import Base


class User(Base):
    """User credentials for authentication."""
    __tablename__ = "user_creds"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    rank_row = relationship("UserRank", back_populates="user", uselist=False, cascade="all, delete-orphan")


class UserRank(Base):
    """
    Running score of one user and their place on the leaderboard.

    rank == 0 means the user has not made a guess yet. Ranks of every row
    with num_guesses > 0 are dense: tied scores share a rank and the next
    score gets the next integer.
    """
    __tablename__ = "user_ranks"
    __table_args__ = (
        CheckConstraint("total_score >= 0", name="ck_user_ranks_total_score"),
        CheckConstraint("num_guesses >= 0", name="ck_user_ranks_num_guesses"),
    )

    id = Column(Integer, ForeignKey("user_creds.id", ondelete="CASCADE"), primary_key=True)
    total_score = Column(Integer, nullable=False, default=0)
    num_guesses = Column(Integer, nullable=False, default=0)
    rank = Column(Integer, nullable=False, default=0, index=True)

    # Relationships
    user = relationship("User", back_populates="rank_row")
