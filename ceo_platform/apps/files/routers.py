"""
Files router.

Metadata only; the bytes are uploaded to storage by the client.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ceo_platform.apps.auth.services import require_permission
from ceo_platform.apps.files.schemas import FileCreate, FileLinkCreate, FileLinkResponse, FileResponse
from ceo_platform.apps.files.services import link_file, register_file
from ceo_platform.apps.users.models import User
from ceo_platform.db.database import get_session
from ceo_platform.utils.responses import success_response

router = APIRouter(prefix="/api/v1/files", tags=["Files"])


@router.post("", status_code=201)
async def register(
    data: FileCreate,
    user: User = Depends(require_permission("files:write")),
    session: AsyncSession = Depends(get_session),
):
    file = await register_file(session, data, user)
    return success_response(
        status_code=201,
        message="File registered",
        data=FileResponse.model_validate(file).model_dump(),
    )


@router.post("/{file_id}/links")
async def link(
    file_id: uuid.UUID,
    data: FileLinkCreate,
    user: User = Depends(require_permission("files:write")),
    session: AsyncSession = Depends(get_session),
):
    """Attach a file to a channel, task or message. 201 when new, 200 when it existed."""
    file_link, created = await link_file(session, file_id, data, user)
    return success_response(
        status_code=201 if created else 200,
        message="File linked" if created else "File already linked",
        data=FileLinkResponse.model_validate(file_link).model_dump(),
    )
