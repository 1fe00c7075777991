"""
Task services.

Tasks may belong to a channel and may be assigned to a user. Moving a
task to "done" stamps completed_at; moving it anywhere else clears it.

A channel task is visible only to that channel's members (and wildcard
holders); tasks without a channel are visible to every task reader.
"""

from typing import Any, Dict, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ceo_platform.apps.channels.models import ChannelMember
from ceo_platform.apps.channels.services import ensure_channel_access, get_channel
from ceo_platform.apps.tasks.models import Task, TaskComment
from ceo_platform.apps.tasks.schemas import CommentCreate, TaskCreate, TaskUpdate
from ceo_platform.apps.users.models import User
from ceo_platform.apps.users.services import get_user
from ceo_platform.db.base_model import utcnow
from ceo_platform.utils.exceptions import PermissionDeniedException, TaskNotFoundException
from ceo_platform.utils.logger import get_logger

logger = get_logger(__name__)


def _check_assign(user: User, assignee_id: Any) -> None:
    if assignee_id is not None and assignee_id != user.id and not user.has_permission("tasks:assign"):
        raise PermissionDeniedException("You cannot assign tasks to other users.")


async def get_task(session: AsyncSession, task_id: Any, user: Optional[User] = None) -> Task:
    """
    Raises:
        TaskNotFoundException: missing or soft-deleted
        PermissionDeniedException: `user` is not in the task's channel
    """
    task = await Task.get_by_id(session, task_id)
    if task is None:
        raise TaskNotFoundException()

    if user is not None and task.channel_id is not None:
        channel = await get_channel(session, task.channel_id, include_deleted=True)
        await ensure_channel_access(session, channel, user)
    return task


async def create_task(session: AsyncSession, data: TaskCreate, creator: User) -> Task:
    """
    Create a task.

    Guard: a channel task requires access to the channel.
    Guard: assigning someone else requires tasks:assign.
    """
    if data.channel_id is not None:
        channel = await get_channel(session, data.channel_id)
        await ensure_channel_access(session, channel, creator)
    if data.assignee_id is not None:
        await get_user(session, data.assignee_id)
    _check_assign(creator, data.assignee_id)

    task = await Task.create(
        db=session,
        title=data.title,
        description=data.description,
        priority=data.priority,
        channel_id=data.channel_id,
        created_by=creator.id,
        assignee_id=data.assignee_id,
        due_date=data.due_date,
    )
    logger.info(f"Task created: {task.title} by {creator.email}")
    return task


async def list_tasks(
    session: AsyncSession,
    status: Optional[str] = None,
    assignee_id: Optional[Any] = None,
    channel_id: Optional[Any] = None,
    page: int = 1,
    per_page: int = 20,
    user: Optional[User] = None,
) -> Dict[str, Any]:
    """Newest first, optionally filtered, limited to what `user` may see."""
    filters = {
        key: value
        for key, value in (
            ("status", status),
            ("assignee_id", assignee_id),
            ("channel_id", channel_id),
        )
        if value is not None
    }
    where = None
    if user is not None and not user.has_permission("*"):
        member_of = select(ChannelMember.channel_id).where(ChannelMember.user_id == user.id)
        where = [or_(Task.channel_id.is_(None), Task.channel_id.in_(member_of))]

    return await Task.paginate(
        session,
        page=page,
        per_page=per_page,
        filters=filters or None,
        order_by="created_at",
        order_desc=True,
        where=where,
    )


async def update_task(session: AsyncSession, task_id: Any, data: TaskUpdate, user: User) -> Task:
    task = await get_task(session, task_id, user)
    changes = data.model_dump(exclude_unset=True)

    if "assignee_id" in changes:
        if changes["assignee_id"] is not None:
            await get_user(session, changes["assignee_id"])
        _check_assign(user, changes["assignee_id"])

    for required in ("title", "priority"):
        if changes.get(required, "") is None:
            changes.pop(required)

    new_status = changes.pop("status", None)
    for field, value in changes.items():
        setattr(task, field, value)

    if new_status is not None and new_status != task.status:
        task.status = new_status
        task.completed_at = utcnow() if new_status == "done" else None

    await task.save(session)
    logger.info(f"Task updated: {task.title}", extra={"fields": ",".join(data.model_fields_set)})
    return task


# ── Comments ──────────────────────────────────────────────────────────────────

async def add_comment(
    session: AsyncSession, task_id: Any, data: CommentCreate, author: User
) -> TaskComment:
    task = await get_task(session, task_id, author)
    comment = await TaskComment.create(
        db=session,
        commit=False,
        task_id=task.id,
        user_id=author.id,
        content=data.content,
    )
    await task.save(session)
    await session.refresh(comment)
    return comment


async def list_comments(
    session: AsyncSession,
    task_id: Any,
    user: Optional[User] = None,
    page: int = 1,
    per_page: int = 50,
) -> Dict[str, Any]:
    """Oldest first, so the thread reads top to bottom."""
    task = await get_task(session, task_id, user)
    return await TaskComment.paginate(
        session,
        page=page,
        per_page=per_page,
        filters={"task_id": task.id},
        order_by="created_at",
    )
