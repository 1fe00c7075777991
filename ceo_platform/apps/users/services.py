"""
User store.

Lookups, credential checks and the account-repair operations that used
to live in one-off scripts (restore, password reset, default backfill).
All "not found" outcomes raise `UserNotFoundException`; database errors
propagate untouched.
"""

import random
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ceo_platform.apps.users.models import User
from ceo_platform.apps.users.schemas import UserCreate, ProfileUpdate
from ceo_platform.db.base_model import utcnow
from ceo_platform.utils.exceptions import ConflictException, UserNotFoundException
from ceo_platform.utils.logger import get_logger
from ceo_platform.utils.security import hash_password, verify_password

logger = get_logger(__name__)


class CredentialCheck(str, Enum):
    AUTHENTICATED = "authenticated"
    INVALID_CREDENTIALS = "invalid_credentials"
    NO_PASSWORD_SET = "no_password_set"


@dataclass
class CredentialResult:
    status: CredentialCheck
    user: Optional[User] = None

    @property
    def authenticated(self) -> bool:
        return self.status is CredentialCheck.AUTHENTICATED


def _random_phone(rng: random.Random) -> str:
    return f"+1-555-{rng.randint(0, 9_999_999):07d}"


def _yesterday(rng: random.Random):
    return utcnow() - timedelta(days=1)


BackfillRule = Union[Callable[[random.Random], Any], str, int, bool]

# Field -> default. Callables receive the RNG so runs can be reproduced.
DEFAULT_BACKFILL_RULES: Dict[str, BackfillRule] = {
    "phone": _random_phone,
    "timezone": "America/New_York",
    "language_preference": "en",
    "last_active": _yesterday,
}

PROFILE_FIELDS = frozenset(ProfileUpdate.model_fields)


def _email_query(email: str, include_deleted: bool = False):
    query = select(User).where(func.lower(User.email) == email.strip().lower())
    if not include_deleted:
        query = query.where(User.deleted_at.is_(None))
    return query


# ── Lookups ───────────────────────────────────────────────────────────────────

async def find_by_email(
    session: AsyncSession,
    email: str,
    include_deleted: bool = False,
) -> User:
    """
    Case-insensitive lookup by email.

    With `include_deleted`, an active row still wins over soft-deleted ones.

    Raises:
        UserNotFoundException: no (visible) user with this email
    """
    query = _email_query(email, include_deleted).order_by(
        User.deleted_at.is_not(None), User.updated_at.desc()
    )
    result = await session.execute(query.limit(1))
    user = result.scalars().first()

    if user is None:
        raise UserNotFoundException(f"No user with email {email}")
    return user


async def get_user(
    session: AsyncSession,
    user_id: Any,
    include_deleted: bool = False,
) -> User:
    user = await User.get_by_id(session, user_id, include_deleted=include_deleted)
    if user is None:
        raise UserNotFoundException()
    return user


async def list_users(
    session: AsyncSession,
    role: Optional[str] = None,
    department: Optional[str] = None,
    page: int = 1,
    per_page: int = 20,
    include_deleted: bool = False,
) -> Dict[str, Any]:
    """Paginated directory ordered by name."""
    filters: Dict[str, Any] = {}
    if role:
        filters["role"] = role
    if department:
        filters["department"] = department

    return await User.paginate(
        session,
        page=page,
        per_page=per_page,
        filters=filters,
        order_by="name",
        include_deleted=include_deleted,
    )


# ── Credentials ───────────────────────────────────────────────────────────────

async def verify_credentials(
    session: AsyncSession,
    email: str,
    password: str,
) -> CredentialResult:
    """
    Check a plaintext password against the stored salted hash.

    Pure check: the failed-attempt counter is the caller's business.
    An unknown email is reported as INVALID_CREDENTIALS.
    """
    try:
        user = await find_by_email(session, email)
    except UserNotFoundException:
        return CredentialResult(CredentialCheck.INVALID_CREDENTIALS)

    if not user.password_hash:
        return CredentialResult(CredentialCheck.NO_PASSWORD_SET, user)

    if not verify_password(password, user.password_hash):
        return CredentialResult(CredentialCheck.INVALID_CREDENTIALS, user)

    return CredentialResult(CredentialCheck.AUTHENTICATED, user)


async def reset_password(
    session: AsyncSession,
    email: str,
    new_password: str,
) -> User:
    """
    Overwrite the password hash and clear any lockout.

    Raises:
        UserNotFoundException: no active user with this email
    """
    user = await find_by_email(session, email)

    user.password_hash = hash_password(new_password)
    user.failed_login_attempts = 0
    user.account_locked_until = None
    await user.save(session)

    logger.info(f"Password reset for {user.email}")
    return user


async def unlock_user(session: AsyncSession, email: str) -> User:
    """Clear the failed-login counter and lock."""
    user = await find_by_email(session, email)

    user.failed_login_attempts = 0
    user.account_locked_until = None
    await user.save(session)

    logger.info(f"Account unlocked: {user.email}")
    return user


# ── Lifecycle ─────────────────────────────────────────────────────────────────

async def create_user(session: AsyncSession, data: UserCreate) -> User:
    """
    Create an account.

    Guard: reject an email already held by an active user.
    """
    if (await session.execute(_email_query(data.email).limit(1))).scalars().first():
        raise ConflictException(f"Email already registered: {data.email}")

    user = await User.create(
        db=session,
        email=data.email,
        name=data.name,
        password_hash=hash_password(data.password) if data.password else None,
        role=data.role,
        department=data.department,
        job_title=data.job_title,
        email_verified=data.email_verified,
    )

    logger.info(f"Created user {user.email} role={user.role}")
    return user


async def restore_user(session: AsyncSession, email: str) -> User:
    """
    Clear the soft-delete marker on the most recently deleted account.

    Idempotent: an already-active account is returned unchanged.

    Raises:
        UserNotFoundException: no row at all for this email
        ConflictException: another active account already uses the email
    """
    result = await session.execute(_email_query(email, include_deleted=True))
    rows: List[User] = list(result.scalars().all())

    if not rows:
        raise UserNotFoundException(f"No user with email {email}")

    active = [u for u in rows if not u.is_deleted]
    deleted = [u for u in rows if u.is_deleted]

    if active and deleted:
        raise ConflictException(f"An active account already uses {email}")
    if active:
        return active[0]

    user = max(deleted, key=lambda u: u.deleted_at)
    await user.restore(session)

    logger.info(f"Restored user {user.email}")
    return user


async def restore_user_by_id(session: AsyncSession, user_id: Any) -> User:
    """
    Clear the soft-delete marker on exactly this account.

    Idempotent: an already-active account is returned unchanged.

    Raises:
        UserNotFoundException: no row with this id
        ConflictException: another active account already uses the email
    """
    user = await get_user(session, user_id, include_deleted=True)
    if not user.is_deleted:
        return user

    holder = (await session.execute(_email_query(user.email).limit(1))).scalars().first()
    if holder is not None:
        raise ConflictException(f"An active account already uses {user.email}")

    await user.restore(session)

    logger.info(f"Restored user {user.email} id={user.id}")
    return user


async def soft_delete_user(session: AsyncSession, user_id: Any) -> User:
    user = await get_user(session, user_id)
    await user.soft_delete(session)

    logger.info(f"Soft-deleted user {user.email}")
    return user


async def update_profile(
    session: AsyncSession,
    user: User,
    changes: ProfileUpdate,
) -> User:
    """Apply only the fields the caller actually sent."""
    for field, value in changes.model_dump(exclude_unset=True).items():
        setattr(user, field, value)

    return await user.save(session)


async def backfill_defaults(
    session: AsyncSession,
    rules: Optional[Dict[str, BackfillRule]] = None,
    include_deleted: bool = False,
    rng: Optional[random.Random] = None,
) -> int:
    """
    Fill optional profile fields that are currently NULL.

    Populated fields are never overwritten, so a second run is a no-op.

    Returns:
        Number of users that received at least one value.
    """
    rules = DEFAULT_BACKFILL_RULES if rules is None else rules
    rng = rng or random.Random()

    unknown = [field for field in rules if field not in PROFILE_FIELDS and field != "last_active"]
    if unknown:
        raise ValueError(f"Cannot backfill non-profile fields: {unknown}")
    if not rules:
        return 0

    query = select(User).where(or_(*[getattr(User, field).is_(None) for field in rules]))
    if not include_deleted:
        query = query.where(User.deleted_at.is_(None))

    users = (await session.execute(query.order_by(User.created_at))).scalars().all()

    changed = 0
    for user in users:
        for field, default in rules.items():
            if getattr(user, field) is None:
                setattr(user, field, default(rng) if callable(default) else default)
        user.updated_at = utcnow()
        changed += 1

    await session.commit()

    logger.info(f"Backfilled defaults on {changed} user(s)", extra={"fields": sorted(rules)})
    return changed
