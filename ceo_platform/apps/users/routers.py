"""
Users router.

Entry/exit only, no logic here. Calls user services.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ceo_platform.apps.auth.services import require_permission, verify_user
from ceo_platform.apps.users.models import User
from ceo_platform.apps.users.schemas import AdminUserResponse, ProfileUpdate, UserResponse
from ceo_platform.apps.users.services import (
    get_user,
    list_users,
    restore_user_by_id,
    soft_delete_user,
    update_profile,
)
from ceo_platform.db.database import get_session
from ceo_platform.utils.responses import paginated_response, pagination_meta, success_response

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("")
async def directory(
    role: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: User = Depends(require_permission("users:read")),
    session: AsyncSession = Depends(get_session),
):
    """List active users, ordered by name."""
    result = await list_users(
        session, role=role, department=department, page=page, per_page=per_page
    )
    return paginated_response(
        message="Users",
        data=[UserResponse.model_validate(u).model_dump() for u in result["items"]],
        pagination=pagination_meta(result),
    )


@router.patch("/me")
async def update_me(
    data: ProfileUpdate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    """Update the caller's own profile fields."""
    updated = await update_profile(session, user, data)
    return success_response(
        status_code=200,
        message="Profile updated",
        data={"user": UserResponse.model_validate(updated).model_dump()},
    )


@router.get("/{user_id}")
async def detail(
    user_id: uuid.UUID,
    user: User = Depends(require_permission("users:read")),
    session: AsyncSession = Depends(get_session),
):
    target = await get_user(session, user_id)
    return success_response(
        status_code=200,
        message="User",
        data=UserResponse.model_validate(target).model_dump(),
    )


@router.delete("/{user_id}")
async def deactivate(
    user_id: uuid.UUID,
    user: User = Depends(require_permission("users:delete")),
    session: AsyncSession = Depends(get_session),
):
    """Soft-delete an account. Reversible via /restore."""
    target = await soft_delete_user(session, user_id)
    return success_response(
        status_code=200,
        message="User deleted",
        data=AdminUserResponse.model_validate(target).model_dump(),
    )


@router.post("/{user_id}/restore")
async def restore(
    user_id: uuid.UUID,
    user: User = Depends(require_permission("users:restore")),
    session: AsyncSession = Depends(get_session),
):
    """Clear the soft-delete marker on an account."""
    restored = await restore_user_by_id(session, user_id)
    return success_response(
        status_code=200,
        message="User restored",
        data=AdminUserResponse.model_validate(restored).model_dump(),
    )
