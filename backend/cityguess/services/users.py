import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.models import User, UserRank
from ..exceptions import InvalidPassword, MissingCredentials, UserAlreadyExists, UserNotFound
from .auth import hash_password, verify_password

logger = logging.getLogger(__name__)


class UserService:
    """Signup and login against the user_creds table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def register(self, email: str, password: str, confirm_password: str) -> User:
        """
        Create an account together with its empty rank row.

        Raises:
            MissingCredentials: empty email or password, or the confirmation differs
            UserAlreadyExists: the email is taken
        """
        if not email or not password:
            raise MissingCredentials()
        if password != confirm_password:
            raise MissingCredentials("Passwords do not match.")

        if await self.get_by_email(email) is not None:
            raise UserAlreadyExists()

        user = User(email=email, hashed_password=hash_password(password))
        user.rank_row = UserRank(total_score=0, num_guesses=0, rank=0)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent signup for the same email
            await self.db.rollback()
            raise UserAlreadyExists() from e
        await self.db.refresh(user)

        logger.info("Registered user %s (%s)", user.id, user.email)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """
        Check an email and password pair.

        Raises:
            MissingCredentials: empty email or password
            UserNotFound: no account with this email
            InvalidPassword: the password does not match
        """
        if not email or not password:
            raise MissingCredentials()

        user = await self.get_by_email(email)
        if user is None:
            raise UserNotFound()
        if not verify_password(user.hashed_password, password):
            raise InvalidPassword()
        return user
