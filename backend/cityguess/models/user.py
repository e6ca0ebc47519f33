from pydantic import BaseModel, EmailStr
from datetime import datetime


class UserSignup(BaseModel):
    """Schema for user registration."""
    email: EmailStr
    password: str
    confirm_password: str


class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """Schema for user response."""
    id: int
    email: str
    created_at: datetime

    class Config:
        from_attributes = True


class Token(BaseModel):
    """JWT token response. The same token is also set as the ``jwt`` cookie."""
    access_token: str
    token_type: str = "bearer"


class Claims(BaseModel):
    """Data stored in the JWT: subject id, subject email and expiry (seconds since epoch)."""
    id: int
    email: str
    exp: int
