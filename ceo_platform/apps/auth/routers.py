"""
Auth router.

Entry/exit only, no logic here. Calls auth services.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ceo_platform.apps.auth.schemas import LoginRequest, RefreshRequest
from ceo_platform.apps.auth.services import login_user, refresh_tokens, verify_user
from ceo_platform.apps.users.models import User
from ceo_platform.apps.users.schemas import UserResponse
from ceo_platform.config.settings import settings
from ceo_platform.db.database import get_session
from ceo_platform.utils.rate_limit import limiter
from ceo_platform.utils.responses import success_response, auth_response

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


@router.post("/login")
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    data: LoginRequest,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate and receive JWT tokens. 401 on bad credentials, 423 when locked."""
    result = await login_user(
        session=session,
        data=data,
        user_agent=request.headers.get("user-agent", ""),
    )
    return auth_response(
        status_code=200,
        message="Login successful",
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
        data=result.user.model_dump(),
    )


@router.post("/refresh")
async def refresh(
    data: RefreshRequest,
    session: AsyncSession = Depends(get_session),
):
    """Exchange a refresh token for a new token pair."""
    result = await refresh_tokens(session=session, refresh_token=data.refresh_token)
    return auth_response(
        status_code=200,
        message="Token refreshed",
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
        data=result.user.model_dump(),
    )


@router.get("/me")
async def me(user: User = Depends(verify_user)):
    """Return the currently authenticated user's profile."""
    return success_response(
        status_code=200,
        message="User profile",
        data={"user": UserResponse.model_validate(user).model_dump()},
    )
