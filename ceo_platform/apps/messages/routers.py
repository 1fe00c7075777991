"""
Messages router.

Channel history lives under the channel it belongs to.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ceo_platform.apps.auth.services import require_permission, verify_user
from ceo_platform.apps.messages.schemas import MessageCreate, MessageResponse
from ceo_platform.apps.messages.services import list_messages, post_message
from ceo_platform.apps.users.models import User
from ceo_platform.db.database import get_session
from ceo_platform.utils.responses import paginated_response, pagination_meta, success_response

router = APIRouter(prefix="/api/v1/channels", tags=["Messages"])


@router.get("/{channel_id}/messages")
async def history(
    channel_id: uuid.UUID,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    """Messages in a channel, newest first."""
    result = await list_messages(session, channel_id, user, page=page, per_page=per_page)
    return paginated_response(
        message="Messages",
        data=[MessageResponse.model_validate(m).model_dump() for m in result["items"]],
        pagination=pagination_meta(result),
    )


@router.post("/{channel_id}/messages", status_code=201)
async def send(
    channel_id: uuid.UUID,
    data: MessageCreate,
    user: User = Depends(require_permission("messages:write")),
    session: AsyncSession = Depends(get_session),
):
    message = await post_message(session, channel_id, user, data)
    return success_response(
        status_code=201,
        message="Message sent",
        data=MessageResponse.model_validate(message).model_dump(),
    )
