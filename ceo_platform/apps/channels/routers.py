"""
Channels router.

Entry/exit only, no logic here. Calls channel services.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ceo_platform.apps.auth.services import require_permission, verify_user
from ceo_platform.apps.channels.schemas import (
    ChannelCreate,
    ChannelResponse,
    MarkReadRequest,
    MemberAdd,
    MemberResponse,
    ReadStatusResponse,
)
from ceo_platform.apps.channels.services import (
    MembershipChange,
    add_member,
    count_unread,
    create_channel,
    ensure_channel_access,
    get_channel,
    list_channels,
    list_members,
    mark_read,
    remove_member,
    soft_delete_channel,
)
from ceo_platform.apps.files.schemas import LinkedFileResponse
from ceo_platform.apps.files.services import list_entity_files
from ceo_platform.apps.users.models import User
from ceo_platform.db.database import get_session
from ceo_platform.utils.responses import paginated_response, pagination_meta, success_response

router = APIRouter(prefix="/api/v1/channels", tags=["Channels"])


def _channel(channel) -> dict:
    return ChannelResponse.model_validate(channel).model_dump()


@router.get("")
async def index(
    include_deleted: bool = Query(False),
    user: User = Depends(require_permission("channels:read")),
    session: AsyncSession = Depends(get_session),
):
    """Channels the caller can see, ordered by name. Deleted ones need wildcard access."""
    if include_deleted and not user.has_permission("*"):
        include_deleted = False
    channels = await list_channels(session, include_deleted=include_deleted, user=user)
    return success_response(
        status_code=200,
        message="Channels",
        data=[_channel(c) for c in channels],
    )


@router.post("", status_code=201)
async def create(
    data: ChannelCreate,
    user: User = Depends(require_permission("channels:create")),
    session: AsyncSession = Depends(get_session),
):
    channel = await create_channel(session, data, user)
    return success_response(status_code=201, message="Channel created", data=_channel(channel))


@router.get("/{channel_id}")
async def detail(
    channel_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    channel = await get_channel(session, channel_id)
    await ensure_channel_access(session, channel, user)
    return success_response(status_code=200, message="Channel", data=_channel(channel))


@router.delete("/{channel_id}")
async def remove(
    channel_id: uuid.UUID,
    user: User = Depends(require_permission("channels:delete")),
    session: AsyncSession = Depends(get_session),
):
    channel = await soft_delete_channel(session, channel_id)
    return success_response(status_code=200, message="Channel deleted", data=_channel(channel))


# ── Members ───────────────────────────────────────────────────────────────────

@router.get("/{channel_id}/members")
async def members(
    channel_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    channel = await get_channel(session, channel_id)
    await ensure_channel_access(session, channel, user)
    rows = await list_members(session, channel.id)
    return success_response(
        status_code=200,
        message="Channel members",
        data=[MemberResponse(**row).model_dump() for row in rows],
    )


@router.post("/{channel_id}/members")
async def add(
    channel_id: uuid.UUID,
    data: MemberAdd,
    user: User = Depends(require_permission("channels:manage_members")),
    session: AsyncSession = Depends(get_session),
):
    """Idempotent: 201 when the user joined, 200 when already a member."""
    outcome = await add_member(session, channel_id, data.user_id, role=data.role)
    added = outcome is MembershipChange.ADDED
    return success_response(
        status_code=201 if added else 200,
        message="Member added" if added else "Already a member",
        data={"result": outcome.value, "user_id": data.user_id},
    )


@router.delete("/{channel_id}/members/{user_id}")
async def kick(
    channel_id: uuid.UUID,
    user_id: uuid.UUID,
    user: User = Depends(require_permission("channels:manage_members")),
    session: AsyncSession = Depends(get_session),
):
    outcome = await remove_member(session, channel_id, user_id)
    return success_response(
        status_code=200,
        message="Member removed" if outcome is MembershipChange.REMOVED else "Not a member",
        data={"result": outcome.value, "user_id": user_id},
    )


# ── Read status ───────────────────────────────────────────────────────────────

@router.post("/{channel_id}/read")
async def read(
    channel_id: uuid.UUID,
    data: MarkReadRequest,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    channel = await get_channel(session, channel_id)
    await ensure_channel_access(session, channel, user)
    status = await mark_read(session, channel.id, user.id, message_id=data.message_id)
    unread = await count_unread(session, channel.id, user.id)
    return success_response(
        status_code=200,
        message="Channel marked as read",
        data=ReadStatusResponse(
            channel_id=channel.id,
            last_read_message_id=status.last_read_message_id,
            last_read_at=status.last_read_at,
            unread_count=unread,
        ).model_dump(),
    )


@router.get("/{channel_id}/unread")
async def unread(
    channel_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    channel = await get_channel(session, channel_id)
    await ensure_channel_access(session, channel, user)
    count = await count_unread(session, channel.id, user.id)
    return success_response(
        status_code=200,
        message="Unread messages",
        data={"channel_id": channel.id, "unread_count": count},
    )


# ── Files ─────────────────────────────────────────────────────────────────────

@router.get("/{channel_id}/files")
async def files(
    channel_id: uuid.UUID,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    """Files linked to the channel; an empty list when there are none."""
    channel = await get_channel(session, channel_id)
    await ensure_channel_access(session, channel, user)
    result = await list_entity_files(session, "channel", channel.id, page=page, per_page=per_page)
    return paginated_response(
        message="Channel files",
        data=[LinkedFileResponse(**row).model_dump() for row in result["items"]],
        pagination=pagination_meta(result),
    )
