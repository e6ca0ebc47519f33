from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse


class CityGuessError(Exception):
    """Base class for every error the game backend reports to a client."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Something very very bad happened...."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidToken(CityGuessError):
    """Missing, malformed, badly signed or expired session token."""
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid token."


class MissingCredentials(CityGuessError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Missing or incorrect credentials."


class InvalidPassword(CityGuessError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid email or password."


class UserAlreadyExists(CityGuessError):
    status_code = status.HTTP_409_CONFLICT
    message = "User already exists."


class UserNotFound(CityGuessError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "User does not exist."


class CityNotFound(CityGuessError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "City does not exist."


class InternalInconsistency(CityGuessError):
    """A storage contract was violated, e.g. an update touched the wrong number of rows."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal data inconsistency."


class StorageUnavailable(CityGuessError):
    """Database transport or transaction failure. Safe for the client to retry."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Storage temporarily unavailable, please retry."


async def cityguess_error_handler(request: Request, exc: CityGuessError) -> JSONResponse:
    """Render a CityGuessError the same way FastAPI renders HTTPException."""
    headers = None
    if isinstance(exc, StorageUnavailable):
        headers = {"Retry-After": "1"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers
    )
