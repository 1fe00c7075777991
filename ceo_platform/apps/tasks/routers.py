"""
Tasks router.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ceo_platform.apps.auth.services import require_permission
from ceo_platform.apps.files.schemas import LinkedFileResponse
from ceo_platform.apps.files.services import list_entity_files
from ceo_platform.apps.tasks.schemas import (
    CommentCreate,
    CommentResponse,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
)
from ceo_platform.apps.tasks.services import (
    add_comment,
    create_task,
    get_task,
    list_comments,
    list_tasks,
    update_task,
)
from ceo_platform.apps.users.models import User
from ceo_platform.db.database import get_session
from ceo_platform.utils.responses import paginated_response, pagination_meta, success_response

router = APIRouter(prefix="/api/v1/tasks", tags=["Tasks"])


def _task(task) -> dict:
    return TaskResponse.model_validate(task).model_dump()


@router.get("")
async def index(
    status: Optional[str] = Query(None),
    assignee_id: Optional[uuid.UUID] = Query(None),
    channel_id: Optional[uuid.UUID] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: User = Depends(require_permission("tasks:read")),
    session: AsyncSession = Depends(get_session),
):
    result = await list_tasks(
        session,
        status=status,
        assignee_id=assignee_id,
        channel_id=channel_id,
        page=page,
        per_page=per_page,
        user=user,
    )
    return paginated_response(
        message="Tasks",
        data=[_task(t) for t in result["items"]],
        pagination=pagination_meta(result),
    )


@router.post("", status_code=201)
async def create(
    data: TaskCreate,
    user: User = Depends(require_permission("tasks:create")),
    session: AsyncSession = Depends(get_session),
):
    task = await create_task(session, data, user)
    return success_response(status_code=201, message="Task created", data=_task(task))


@router.get("/{task_id}")
async def detail(
    task_id: uuid.UUID,
    user: User = Depends(require_permission("tasks:read")),
    session: AsyncSession = Depends(get_session),
):
    task = await get_task(session, task_id, user)
    return success_response(status_code=200, message="Task", data=_task(task))


@router.patch("/{task_id}")
async def update(
    task_id: uuid.UUID,
    data: TaskUpdate,
    user: User = Depends(require_permission("tasks:update")),
    session: AsyncSession = Depends(get_session),
):
    task = await update_task(session, task_id, data, user)
    return success_response(status_code=200, message="Task updated", data=_task(task))


@router.get("/{task_id}/comments")
async def comments(
    task_id: uuid.UUID,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    user: User = Depends(require_permission("tasks:read")),
    session: AsyncSession = Depends(get_session),
):
    result = await list_comments(session, task_id, user, page=page, per_page=per_page)
    return paginated_response(
        message="Comments",
        data=[CommentResponse.model_validate(c).model_dump() for c in result["items"]],
        pagination=pagination_meta(result),
    )


@router.post("/{task_id}/comments", status_code=201)
async def comment(
    task_id: uuid.UUID,
    data: CommentCreate,
    user: User = Depends(require_permission("tasks:read")),
    session: AsyncSession = Depends(get_session),
):
    created = await add_comment(session, task_id, data, user)
    return success_response(
        status_code=201,
        message="Comment added",
        data=CommentResponse.model_validate(created).model_dump(),
    )


@router.get("/{task_id}/files")
async def files(
    task_id: uuid.UUID,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: User = Depends(require_permission("tasks:read")),
    session: AsyncSession = Depends(get_session),
):
    task = await get_task(session, task_id, user)
    result = await list_entity_files(session, "task", task.id, page=page, per_page=per_page)
    return paginated_response(
        message="Task files",
        data=[LinkedFileResponse(**row).model_dump() for row in result["items"]],
        pagination=pagination_meta(result),
    )
