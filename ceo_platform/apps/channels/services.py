"""
Channel store.

Listing, membership and read tracking. Membership and read-marker writes
are single `INSERT .. ON CONFLICT` statements against their unique
(channel_id, user_id) constraints, so they are idempotent and safe with
concurrent writers.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete, exists, func
from sqlalchemy.ext.asyncio import AsyncSession

from ceo_platform.apps.channels.models import Category, Channel, ChannelMember, ChannelReadStatus
from ceo_platform.apps.channels.schemas import ChannelCreate
from ceo_platform.apps.messages.models import Message
from ceo_platform.apps.users.models import User
from ceo_platform.apps.users.services import get_user
from ceo_platform.db.base_model import utcnow
from ceo_platform.utils.exceptions import (
    ChannelNotFoundException,
    MessageNotFoundException,
    PermissionDeniedException,
    ResourceNotFoundException,
)
from ceo_platform.utils.logger import get_logger
from ceo_platform.utils.metrics import membership_changes

logger = get_logger(__name__)


class MembershipChange(str, Enum):
    ADDED = "added"
    ALREADY_MEMBER = "already_member"
    REMOVED = "removed"
    NOT_MEMBER = "not_member"


# Channel type -> category name (matched case-insensitively, by substring).
DEFAULT_CATEGORY_MAPPING: Dict[str, str] = {
    "announcement": "announcement",
    "department": "department",
    "project": "project",
    "initiative": "project",
    "temporary": "general",
}


# ── Channels ──────────────────────────────────────────────────────────────────

async def get_channel(
    session: AsyncSession,
    channel_id: Any,
    include_deleted: bool = False,
) -> Channel:
    channel = await Channel.get_by_id(session, channel_id, include_deleted=include_deleted)
    if channel is None:
        raise ChannelNotFoundException()
    return channel


async def list_channels(
    session: AsyncSession,
    include_deleted: bool = False,
    user: Optional[User] = None,
) -> List[Channel]:
    """
    All channels ordered by name.

    With a `user` lacking the wildcard permission, only the channels that
    user belongs to.

    Complexity: O(n log n) sort on name (indexed).
    """
    query = select(Channel)
    if not include_deleted:
        query = query.where(Channel.deleted_at.is_(None))

    if user is not None and not user.has_permission("*"):
        query = query.join(ChannelMember, ChannelMember.channel_id == Channel.id).where(
            ChannelMember.user_id == user.id
        )

    result = await session.execute(query.order_by(Channel.name, Channel.created_at))
    return list(result.scalars().all())


async def create_channel(session: AsyncSession, data: ChannelCreate, creator: User) -> Channel:
    """Create a channel; the creator joins as owner in the same transaction."""
    if data.category_id and await Category.get_by_id(session, data.category_id) is None:
        raise ResourceNotFoundException("Category not found.")

    channel = await Channel.create(
        db=session,
        commit=False,
        name=data.name,
        description=data.description,
        channel_type=data.channel_type,
        category_id=data.category_id,
        created_by=creator.id,
    )
    await ChannelMember.create(
        db=session, commit=False, channel_id=channel.id, user_id=creator.id, role="owner"
    )
    await session.commit()
    await session.refresh(channel)

    logger.info(f"Channel created: {channel.name} ({channel.channel_type}) by {creator.email}")
    return channel


async def soft_delete_channel(session: AsyncSession, channel_id: Any) -> Channel:
    channel = await get_channel(session, channel_id)
    await channel.soft_delete(session)

    logger.info(f"Channel deleted: {channel.name}")
    return channel


async def ensure_channel_access(session: AsyncSession, channel: Channel, user: User) -> None:
    """Members (and wildcard holders) may read and post."""
    if user.has_permission("*"):
        return
    if not await is_member(session, channel.id, user.id):
        raise PermissionDeniedException("You are not a member of this channel.")


# ── Membership ────────────────────────────────────────────────────────────────

async def is_member(session: AsyncSession, channel_id: Any, user_id: Any) -> bool:
    query = select(
        exists().where(ChannelMember.channel_id == channel_id, ChannelMember.user_id == user_id)
    )
    return bool((await session.execute(query)).scalar())


async def add_member(
    session: AsyncSession,
    channel_id: Any,
    user_id: Any,
    role: str = "member",
) -> MembershipChange:
    """
    Add a user to a channel. Adding an existing member is a no-op.

    Raises:
        ChannelNotFoundException: channel missing or soft-deleted
        UserNotFoundException: user missing or soft-deleted
    """
    channel = await get_channel(session, channel_id)
    user = await get_user(session, user_id)

    stmt = (
        ChannelMember.insert_statement(session)
        .values(channel_id=channel.id, user_id=user.id, role=role)
        .on_conflict_do_nothing(index_elements=["channel_id", "user_id"])
    )
    result = await session.execute(stmt)

    if result.rowcount:
        await channel.save(session)  # refreshes updated_at, commits
        outcome = MembershipChange.ADDED
        logger.info(f"Added {user.email} to channel {channel.name}", extra={"role": role})
    else:
        await session.commit()
        outcome = MembershipChange.ALREADY_MEMBER

    membership_changes.labels(action="add", result=outcome.value).inc()
    return outcome


async def remove_member(session: AsyncSession, channel_id: Any, user_id: Any) -> MembershipChange:
    channel = await get_channel(session, channel_id)

    result = await session.execute(
        delete(ChannelMember).where(
            ChannelMember.channel_id == channel.id, ChannelMember.user_id == user_id
        )
    )

    if result.rowcount:
        await channel.save(session)
        outcome = MembershipChange.REMOVED
        logger.info(f"Removed user {user_id} from channel {channel.name}")
    else:
        await session.commit()
        outcome = MembershipChange.NOT_MEMBER

    membership_changes.labels(action="remove", result=outcome.value).inc()
    return outcome


async def list_members(session: AsyncSession, channel_id: Any) -> List[Dict[str, Any]]:
    """Active members in join order."""
    channel = await get_channel(session, channel_id)

    result = await session.execute(
        select(ChannelMember, User)
        .join(User, User.id == ChannelMember.user_id)
        .where(ChannelMember.channel_id == channel.id, User.deleted_at.is_(None))
        .order_by(ChannelMember.joined_at, ChannelMember.created_at)
    )
    return [
        {
            "user_id": user.id,
            "name": user.name,
            "email": user.email,
            "user_role": user.role,
            "role": member.role,
            "joined_at": member.joined_at,
        }
        for member, user in result.all()
    ]


# ── Read status ───────────────────────────────────────────────────────────────

async def count_unread(session: AsyncSession, channel_id: Any, user_id: Any) -> int:
    """Messages from other people newer than the user's read marker."""
    status = await ChannelReadStatus.find_one(session, channel_id=channel_id, user_id=user_id)

    query = (
        select(func.count())
        .select_from(Message)
        .where(
            Message.channel_id == channel_id,
            Message.deleted_at.is_(None),
            Message.sender_id.is_distinct_from(user_id),
        )
    )
    if status is not None:
        query = query.where(Message.created_at > status.last_read_at)

    return (await session.execute(query)).scalar_one()


async def mark_read(
    session: AsyncSession,
    channel_id: Any,
    user_id: Any,
    message_id: Optional[Any] = None,
) -> ChannelReadStatus:
    """
    Move the user's read marker to `message_id` (or to now).

    Raises:
        MessageNotFoundException: message not in this channel
    """
    channel = await get_channel(session, channel_id)
    read_at = utcnow()

    if message_id is not None:
        message = await Message.get_by_id(session, message_id)
        if message is None or message.channel_id != channel.id:
            raise MessageNotFoundException()
        read_at = message.created_at

    stmt = ChannelReadStatus.insert_statement(session).values(
        channel_id=channel.id,
        user_id=user_id,
        last_read_message_id=message_id,
        last_read_at=read_at,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["channel_id", "user_id"],
        set_={
            "last_read_message_id": stmt.excluded.last_read_message_id,
            "last_read_at": stmt.excluded.last_read_at,
            "updated_at": utcnow(),
        },
    )
    await session.execute(stmt)
    await session.commit()

    result = await session.execute(
        select(ChannelReadStatus)
        .where(ChannelReadStatus.channel_id == channel.id, ChannelReadStatus.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


# ── Categories ────────────────────────────────────────────────────────────────

async def link_categories_by_type(
    session: AsyncSession,
    mapping: Optional[Dict[str, str]] = None,
) -> int:
    """
    Point each channel at the category matching its type.

    Only channels whose category differs are touched; returns how many.
    """
    mapping = DEFAULT_CATEGORY_MAPPING if mapping is None else mapping
    categories = await Category.find_many(session, limit=1000, order_by="name")

    target_for_type: Dict[str, Any] = {}
    for channel_type, category_name in mapping.items():
        match = next(
            (c for c in categories if category_name.lower() in c.name.lower()),
            None,
        )
        if match is None:
            logger.warning(f"No category found for {channel_type} -> {category_name}")
            continue
        target_for_type[channel_type] = match.id

    updated = 0
    for channel in await list_channels(session):
        target = target_for_type.get(channel.channel_type)
        if target and target != channel.category_id:
            channel.category_id = target
            channel.updated_at = utcnow()
            updated += 1

    await session.commit()

    logger.info(f"Linked categories on {updated} channel(s)")
    return updated
