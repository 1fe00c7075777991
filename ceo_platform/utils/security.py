from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError as JWTError

from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError
from pwdlib.hashers.argon2 import Argon2Hasher
from pwdlib.hashers.bcrypt import BcryptHasher
from user_agents import parse

from ceo_platform.config.settings import settings
from ceo_platform.utils.exceptions import ExpiredTokenException, InvalidTokenException

# New hashes use bcrypt at a fixed cost; argon2 hashes still verify.
password_hasher = PasswordHash(
    (BcryptHasher(rounds=settings.PASSWORD_HASH_ROUNDS), Argon2Hasher())
)


def hash_password(password: str) -> str:
    """Hash a password with a per-record salt."""
    return password_hasher.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a stored hash."""
    try:
        return password_hasher.verify(plain_password, hashed_password)
    except UnknownHashError:
        return False


def create_access_token(
    user_id: str,
    role: str,
    platform: str,  # "mobile" or "web"
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    payload = {
        "sub": user_id,
        "role": role,
        "platform": platform,
        "type": "access",
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(
        payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )


def create_refresh_token(
    user_id: str, role: str, platform: str, expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT refresh token.
    Mobile sessions live longer than web ones.
    """
    ttl_days = (
        settings.REFRESH_TOKEN_EXPIRE_DAYS_MOBILE
        if platform == "mobile"
        else settings.REFRESH_TOKEN_EXPIRE_DAYS_WEB
    )
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=ttl_days))

    payload = {
        "sub": user_id,
        "role": role,
        "platform": platform,
        "type": "refresh",
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(
        payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )


def verify_token_type(token: str, expected_type: str) -> dict[str, Any]:
    """Decode a token and check its `type` claim."""
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except ExpiredSignatureError:
        raise ExpiredTokenException()
    except JWTError:
        raise InvalidTokenException()

    if payload.get("type") != expected_type:
        raise InvalidTokenException(f"Invalid token type. Expected {expected_type}.")
    if not payload.get("sub"):
        raise InvalidTokenException()
    return payload


def get_device_info(user_agent_str: str) -> dict[str, Any]:
    """
    Parse user agent.
    """
    user_agent = parse(user_agent_str or "")
    return {
        "os": user_agent.os.family,
        "device": user_agent.device.family,
        "is_mobile": user_agent.is_mobile,
        "is_pc": user_agent.is_pc,
        "app_platform": "mobile" if user_agent.is_mobile else "web",
    }
