from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..database.session import get_db
from ..dependencies import get_app_settings, get_current_claims, get_verifier
from ..models.user import Claims, Token, UserLogin, UserResponse, UserSignup
from ..services.auth import COOKIE_NAME, CredentialVerifier
from ..services.users import UserService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    credentials: UserSignup,
    db: AsyncSession = Depends(get_db)
):
    """Create a new account."""
    return await UserService(db).register(
        credentials.email, credentials.password, credentials.confirm_password
    )


@router.post("/login", response_model=Token)
async def login(
    credentials: UserLogin,
    response: Response,
    db: AsyncSession = Depends(get_db),
    verifier: CredentialVerifier = Depends(get_verifier),
    settings: Settings = Depends(get_app_settings)
):
    """Log in and receive the session cookie."""
    user = await UserService(db).authenticate(credentials.email, credentials.password)
    token = verifier.issue_token(user.id, user.email)

    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=verifier.token_lifetime_seconds
    )
    return Token(access_token=token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(response: Response):
    """Drop the session cookie."""
    response.delete_cookie(COOKIE_NAME)
    return None


@router.get("/me", response_model=Claims)
async def me(current_user: Claims = Depends(get_current_claims)):
    """Show the claims of the current session."""
    return current_user
