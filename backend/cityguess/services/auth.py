"""
Session tokens and password hashing.

A session is a signed JWT carried in the ``jwt`` cookie. Scoring requires a
valid session; browsing does not, which is why verification comes in two
flavours: ``verify_required`` raises ``InvalidToken`` and ``verify_optional``
quietly answers ``None``.
"""

import logging
import time
from typing import Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from pydantic import ValidationError
from starlette.requests import cookie_parser

from ..exceptions import InvalidToken
from ..models.user import Claims

logger = logging.getLogger(__name__)

COOKIE_NAME = "jwt"

_password_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a password with argon2. A random salt is generated per password."""
    return _password_hasher.hash(password)


def verify_password(hashed_password: str, password: str) -> bool:
    """Check a password against an encoded argon2 hash."""
    try:
        return _password_hasher.verify(hashed_password, password)
    except (VerificationError, InvalidHashError):
        return False


class Keys:
    """Signing material, built once at startup and read-only afterwards."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self.secret = secret
        self.algorithm = algorithm


class CredentialVerifier:
    """Issues and verifies session tokens against one set of keys."""

    def __init__(self, keys: Keys, token_lifetime_seconds: int = 8 * 60 * 60):
        self.keys = keys
        self.token_lifetime_seconds = token_lifetime_seconds

    @staticmethod
    def extract_token(cookie_header: Optional[str]) -> Optional[str]:
        """Return the value of the ``jwt`` entry of a Cookie header, if any."""
        if not cookie_header:
            return None
        return cookie_parser(cookie_header).get(COOKIE_NAME) or None

    def issue_token(self, user_id: int, email: str, now: Optional[float] = None) -> str:
        """Sign a session token for a freshly authenticated user."""
        issued_at = int(now if now is not None else time.time())
        claims = Claims(id=user_id, email=email, exp=issued_at + self.token_lifetime_seconds)
        return jwt.encode(claims.model_dump(), self.keys.secret, algorithm=self.keys.algorithm)

    def _decode(self, token: str) -> Claims:
        payload = jwt.decode(
            token,
            self.keys.secret,
            algorithms=[self.keys.algorithm],
            options={"require": ["exp"]}
        )
        claims = Claims(**payload)
        # PyJWT still accepts exp == now
        if claims.exp <= time.time():
            raise jwt.ExpiredSignatureError("Signature has expired")
        return claims

    def verify_required(self, token: Optional[str]) -> Claims:
        """
        Verify a session token that must be present and valid.

        Raises:
            InvalidToken: the token is missing, malformed, badly signed or expired
        """
        if not token:
            raise InvalidToken()
        try:
            return self._decode(token)
        except (jwt.InvalidTokenError, ValidationError) as e:
            logger.info("Rejected session token: %s", e)
            raise InvalidToken() from e

    def verify_optional(self, token: Optional[str]) -> Optional[Claims]:
        """Verify a session token if there is one; any failure reads as anonymous."""
        if not token:
            return None
        try:
            return self._decode(token)
        except (jwt.InvalidTokenError, ValidationError):
            return None
