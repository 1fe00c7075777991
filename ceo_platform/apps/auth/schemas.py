"""
Auth Pydantic schemas.

Input validation for auth routes. Responses reuse `UserResponse`.
"""

from enum import Enum

from pydantic import BaseModel, EmailStr, Field

from ceo_platform.apps.users.schemas import UserResponse


class LoginOutcome(str, Enum):
    """Terminal states of a login attempt."""
    AUTHENTICATED = "authenticated"
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_LOCKED = "account_locked"
    NOT_FOUND = "not_found"


# ── Request Schemas ───────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    """Login with email + password."""
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class RefreshRequest(BaseModel):
    """Refresh access token using refresh token."""
    refresh_token: str = Field(..., min_length=1)


# ── Internal Results ──────────────────────────────────────────────────────────

class TokenPair(BaseModel):
    """Access + refresh token pair."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResult(BaseModel):
    """Login response with tokens and user data."""
    user: UserResponse
    tokens: TokenPair
