"""
Message services.

Paginated channel history and posting. Access is checked against channel
membership before anything is read or written.
"""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from ceo_platform.apps.channels.services import ensure_channel_access, get_channel
from ceo_platform.apps.messages.models import Message
from ceo_platform.apps.messages.schemas import MessageCreate
from ceo_platform.apps.users.models import User
from ceo_platform.utils.exceptions import MessageNotFoundException, ValidationException
from ceo_platform.utils.logger import get_logger
from ceo_platform.utils.metrics import messages_posted

logger = get_logger(__name__)


async def list_messages(
    session: AsyncSession,
    channel_id: Any,
    user: User,
    page: int = 1,
    per_page: int = 50,
) -> Dict[str, Any]:
    """
    Channel history, newest first.

    Complexity: O(log n + k) via idx_messages_channel_created.
    """
    channel = await get_channel(session, channel_id)
    await ensure_channel_access(session, channel, user)

    return await Message.paginate(
        session,
        page=page,
        per_page=per_page,
        filters={"channel_id": channel.id},
        order_by="created_at",
        order_desc=True,
    )


async def post_message(
    session: AsyncSession,
    channel_id: Any,
    sender: User,
    data: MessageCreate,
) -> Message:
    """
    Post to a channel.

    Guard: sender must be a member (or hold the wildcard permission).
    Guard: a thread parent must live in the same channel.
    """
    channel = await get_channel(session, channel_id)
    await ensure_channel_access(session, channel, sender)

    if data.parent_id is not None:
        parent = await Message.get_by_id(session, data.parent_id)
        if parent is None:
            raise MessageNotFoundException("Parent message not found.")
        if parent.channel_id != channel.id:
            raise ValidationException("Parent message belongs to another channel.")

    message = await Message.create(
        db=session,
        commit=False,
        channel_id=channel.id,
        sender_id=sender.id,
        content=data.content,
        message_type=data.message_type,
        parent_id=data.parent_id,
    )
    await channel.save(session)  # bumps channel activity and commits both rows
    await session.refresh(message)

    messages_posted.labels(message_type=message.message_type).inc()
    logger.info(f"Message posted in {channel.name} by {sender.email}")
    return message
