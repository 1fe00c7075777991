"""
File services.

Metadata registration and entity links. Linking is idempotent: the same
file linked twice to the same entity keeps one link.
"""

from typing import Any, Dict, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ceo_platform.apps.channels.models import Channel
from ceo_platform.apps.channels.services import ensure_channel_access, get_channel
from ceo_platform.apps.files.models import File, FileEntityLink
from ceo_platform.apps.files.schemas import FileCreate, FileLinkCreate
from ceo_platform.apps.messages.models import Message
from ceo_platform.apps.tasks.models import Task
from ceo_platform.apps.users.models import User
from ceo_platform.utils.exceptions import FileNotFoundException, ResourceNotFoundException
from ceo_platform.utils.logger import get_logger

logger = get_logger(__name__)

_ENTITY_MODELS = {"channel": Channel, "task": Task, "message": Message}


async def register_file(session: AsyncSession, data: FileCreate, uploader: User) -> File:
    file = await File.create(
        db=session,
        filename=data.filename,
        mime_type=data.mime_type,
        size_bytes=data.size_bytes,
        storage_url=data.storage_url,
        uploaded_by=uploader.id,
    )
    logger.info(f"File registered: {file.filename} ({file.size_bytes} bytes) by {uploader.email}")
    return file


async def _ensure_entity_access(
    session: AsyncSession, entity, entity_type: str, user: User
) -> None:
    """Channel-scoped entities follow the channel's membership rule."""
    channel_id = entity.id if entity_type == "channel" else entity.channel_id
    if channel_id is None:
        return
    channel = await get_channel(session, channel_id)
    await ensure_channel_access(session, channel, user)


async def link_file(
    session: AsyncSession,
    file_id: Any,
    data: FileLinkCreate,
    user: User,
) -> Tuple[FileEntityLink, bool]:
    """
    Attach a file to a channel, task or message.

    One `INSERT .. ON CONFLICT DO NOTHING` against uq_file_entity_links; a
    previously soft-deleted link is revived.

    Returns:
        (link, created); created is False when the link already existed.

    Raises:
        PermissionDeniedException: the entity lives in a channel the user is not in
    """
    file = await File.get_by_id(session, file_id)
    if file is None:
        raise FileNotFoundException()

    entity = await _ENTITY_MODELS[data.entity_type].get_by_id(session, data.entity_id)
    if entity is None:
        raise ResourceNotFoundException(f"{data.entity_type.capitalize()} not found.")
    await _ensure_entity_access(session, entity, data.entity_type, user)

    stmt = (
        FileEntityLink.insert_statement(session)
        .values(
            file_id=file.id,
            entity_type=data.entity_type,
            entity_id=entity.id,
            link_type=data.link_type,
            linked_by=user.id,
        )
        .on_conflict_do_nothing(index_elements=["file_id", "entity_type", "entity_id"])
    )
    created = bool((await session.execute(stmt)).rowcount)
    await session.commit()

    result = await session.execute(
        select(FileEntityLink)
        .where(
            FileEntityLink.file_id == file.id,
            FileEntityLink.entity_type == data.entity_type,
            FileEntityLink.entity_id == entity.id,
        )
        .execution_options(populate_existing=True)
    )
    link = result.scalar_one()

    if link.is_deleted:
        await link.restore(session)
        created = True

    if created:
        logger.info(f"Linked file {file.filename} to {data.entity_type} {entity.id}")
    return link, created


async def list_entity_files(
    session: AsyncSession,
    entity_type: str,
    entity_id: Any,
    page: int = 1,
    per_page: int = 20,
) -> Dict[str, Any]:
    """
    Files linked to an entity, most recently uploaded first.

    Complexity: O(log n + k) via idx_file_entity_links_entity.
    """
    per_page = min(max(per_page, 1), 100)
    page = max(page, 1)

    conditions = (
        FileEntityLink.entity_type == entity_type,
        FileEntityLink.entity_id == entity_id,
        FileEntityLink.deleted_at.is_(None),
        File.deleted_at.is_(None),
    )
    joined = select(File, FileEntityLink).join(FileEntityLink, FileEntityLink.file_id == File.id)

    total = (
        await session.execute(
            select(func.count())
            .select_from(File)
            .join(FileEntityLink, FileEntityLink.file_id == File.id)
            .where(*conditions)
        )
    ).scalar_one()

    rows = await session.execute(
        joined.where(*conditions)
        .order_by(File.uploaded_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    items = [
        {
            "id": file.id,
            "filename": file.filename,
            "mime_type": file.mime_type,
            "size_bytes": file.size_bytes,
            "storage_url": file.storage_url,
            "uploaded_by": file.uploaded_by,
            "uploaded_at": file.uploaded_at,
            "entity_type": link.entity_type,
            "link_type": link.link_type,
        }
        for file, link in rows.all()
    ]

    pages = (total + per_page - 1) // per_page
    return {
        "items": items,
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": pages,
        "has_next": page < pages,
        "has_prev": page > 1,
    }
