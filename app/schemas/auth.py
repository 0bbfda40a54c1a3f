from pydantic import BaseModel, EmailStr
from datetime import datetime
from typing import Optional, Literal


RoleType = Literal["SUPER_ADMIN", "ADMIN", "EDITOR"]


class UserResponse(BaseModel):
    """Staff user as returned by /auth/me."""

    id: str
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: RoleType = "ADMIN"
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_db_user(cls, user) -> "UserResponse":
        """Create UserResponse from database User model."""
        return cls(
            id=str(user.id),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at,
        )


class AuthMeResponse(BaseModel):
    user: UserResponse


class Token(BaseModel):
    """JWT token response."""

    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    """Data encoded in JWT token."""

    user_id: Optional[int] = None
    email: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
