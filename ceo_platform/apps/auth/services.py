"""
Auth business logic.

Handles login (with lockout bookkeeping), token refresh and JWT-based user
verification. `verify_user` is the FastAPI dependency used by all secured
routes; `require_permission` layers role checks on top of it.

Lockout policy:
- MAX_FAILED_LOGIN_ATTEMPTS consecutive failures lock the account for
  ACCOUNT_LOCKOUT_MINUTES (0 attempts disables lockout).
- Every attempt is checked against the stored hash, but while the lock
  holds the answer is AccountLocked even for the right password.
- The lock lifts when its time passes (the counter starts over) or when
  an administrator resets the password / unlocks the account.
"""

import uuid
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from ceo_platform.apps.auth.schemas import LoginOutcome, LoginRequest, LoginResult, TokenPair
from ceo_platform.apps.users.models import User
from ceo_platform.apps.users.schemas import UserResponse
from ceo_platform.apps.users.services import CredentialCheck, verify_credentials
from ceo_platform.config.settings import settings
from ceo_platform.db.base_model import utcnow
from ceo_platform.db.database import get_session
from ceo_platform.utils.exceptions import (
    AccountLockedException,
    InvalidCredentialsException,
    InvalidTokenException,
    PermissionDeniedException,
)
from ceo_platform.utils.logger import get_logger
from ceo_platform.utils.metrics import account_lockouts, login_attempts
from ceo_platform.utils.security import (
    create_access_token,
    create_refresh_token,
    get_device_info,
    verify_token_type,
)

logger = get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


# ── Token helpers ─────────────────────────────────────────────────────────────

def issue_tokens(user: User, platform: str) -> TokenPair:
    user_id = str(user.id)
    return TokenPair(
        access_token=create_access_token(user_id=user_id, role=user.role, platform=platform),
        refresh_token=create_refresh_token(user_id=user_id, role=user.role, platform=platform),
    )


async def _load_token_user(session: AsyncSession, subject: str) -> User:
    try:
        user_id = uuid.UUID(subject)
    except ValueError:
        raise InvalidTokenException()

    # Soft-deleted accounts lose their sessions immediately.
    user = await User.get_by_id(session, user_id)
    if user is None:
        raise InvalidTokenException("User not found")
    return user


async def who_am_i(session: AsyncSession, token: str) -> User:
    """
    Resolve an access token to its (still active) user.

    Raises:
        InvalidTokenException: malformed, wrong type, or user gone
        ExpiredTokenException: signature expired
    """
    payload = verify_token_type(token, expected_type="access")
    return await _load_token_user(session, payload["sub"])


# ── FastAPI Auth Dependencies ─────────────────────────────────────────────────

async def verify_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    session: AsyncSession = Depends(get_session),
) -> User:
    """
    FastAPI dependency: validates Bearer token and returns the active user.
    """
    if credentials is None:
        raise InvalidTokenException("Not authenticated")

    user = await who_am_i(session, credentials.credentials)
    logger.debug(f"Authenticated user: {user.email} role={user.role}")
    return user


def require_permission(permission: str):
    """Dependency factory: the current user must hold `permission` (or `*`)."""

    async def dependency(user: User = Depends(verify_user)) -> User:
        if not user.has_permission(permission):
            logger.warning(f"Permission {permission} denied for {user.email}")
            raise PermissionDeniedException()
        return user

    return dependency


# ── Auth Services ─────────────────────────────────────────────────────────────

def _lock_remaining(user: User, now: datetime) -> Optional[int]:
    """Seconds left on an active lock, or None."""
    if user.account_locked_until and user.account_locked_until > now:
        return int((user.account_locked_until - now).total_seconds()) + 1
    return None


async def _record_failure(session: AsyncSession, user: User, now: datetime) -> None:
    user.failed_login_attempts += 1

    threshold = settings.MAX_FAILED_LOGIN_ATTEMPTS
    if threshold and user.failed_login_attempts >= threshold:
        user.account_locked_until = now + timedelta(minutes=settings.ACCOUNT_LOCKOUT_MINUTES)
        account_lockouts.inc()
        logger.warning(
            f"Account locked: {user.email}",
            extra={"failed_attempts": user.failed_login_attempts},
        )

    await user.save(session)


async def login_user(
    session: AsyncSession,
    data: LoginRequest,
    user_agent: str = "",
) -> LoginResult:
    """
    Authenticate user and return JWT token pair.

    Guard: bad credentials and unknown emails get the same generic error.
    Guard: locked accounts are refused until the lock expires.
    """
    now = utcnow()
    check = await verify_credentials(session, data.email, data.password)
    user = check.user

    if user is None:
        login_attempts.labels(outcome=LoginOutcome.NOT_FOUND.value).inc()
        logger.warning(f"Login failed: no active user for {data.email}")
        raise InvalidCredentialsException()

    retry_after = _lock_remaining(user, now)
    if retry_after:
        login_attempts.labels(outcome=LoginOutcome.ACCOUNT_LOCKED.value).inc()
        logger.warning(f"Login refused: {user.email} is locked")
        raise AccountLockedException(retry_after=retry_after)

    if user.account_locked_until is not None:
        # Lock has expired: start a fresh series of attempts.
        user.failed_login_attempts = 0
        user.account_locked_until = None

    if check.status is CredentialCheck.NO_PASSWORD_SET:
        login_attempts.labels(outcome=LoginOutcome.INVALID_CREDENTIALS.value).inc()
        logger.warning(f"Login failed: {user.email} has no password set")
        await session.commit()
        raise InvalidCredentialsException()

    if not check.authenticated:
        login_attempts.labels(outcome=LoginOutcome.INVALID_CREDENTIALS.value).inc()
        logger.warning(f"Login failed: invalid password for {user.email}")
        await _record_failure(session, user, now)
        raise InvalidCredentialsException()

    user.failed_login_attempts = 0
    user.last_login = now
    user.last_active = now
    user.login_count += 1
    await user.save(session)

    platform = get_device_info(user_agent)["app_platform"]
    tokens = issue_tokens(user, platform)

    login_attempts.labels(outcome=LoginOutcome.AUTHENTICATED.value).inc()
    logger.info(f"User logged in: {user.email}", extra={"platform": platform})
    return LoginResult(user=UserResponse.model_validate(user), tokens=tokens)


async def refresh_tokens(session: AsyncSession, refresh_token: str) -> LoginResult:
    """Exchange a refresh token for a new pair, re-checking the account."""
    payload = verify_token_type(refresh_token, expected_type="refresh")
    user = await _load_token_user(session, payload["sub"])

    tokens = issue_tokens(user, payload.get("platform", "web"))
    logger.info(f"Tokens refreshed for {user.email}")
    return LoginResult(user=UserResponse.model_validate(user), tokens=tokens)
