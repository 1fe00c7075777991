"""
Base model with shared columns and query patterns.

Every table gets a UUID primary key, audit timestamps and a `deleted_at`
soft-delete marker. Read helpers exclude soft-deleted rows unless
`include_deleted=True` is passed.

Algorithm Complexity Standards:
- Pagination is mandatory for list queries
- Index usage must be explicit
"""

import uuid
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Sequence, TypeVar
from sqlalchemy import DateTime, select, func, desc, asc
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Mapped, mapped_column, DeclarativeBase
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.types import TypeDecorator

T = TypeVar("T", bound="BaseModel")

_DIALECT_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime on every backend.

    PostgreSQL keeps the offset; SQLite drops it, so values are normalised
    to UTC on the way in and tagged as UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class Base(DeclarativeBase):
    """Base class for all models"""

    pass


class BaseModel(Base):
    """
    Abstract base model with common fields and CRUD helpers.

    All list queries enforce:
    - Explicit pagination
    - Soft-delete filtering
    """

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    # CREATE OPERATIONS

    @classmethod
    async def create(
        cls: type[T], db: AsyncSession, commit: bool = True, **kwargs
    ) -> T:
        """
        Create new instance and optionally commit.
        Without commit the instance is flushed so its id is usable.
        """
        instance = cls(**kwargs)
        db.add(instance)

        if commit:
            await db.commit()
            await db.refresh(instance)
        else:
            await db.flush()

        return instance

    @classmethod
    def insert_statement(cls, db: AsyncSession):
        """
        Dialect `INSERT` for this table, exposing `on_conflict_do_nothing`
        and `on_conflict_do_update` for single-statement upserts.
        """
        dialect = db.get_bind().dialect.name
        try:
            insert = _DIALECT_INSERTS[dialect]
        except KeyError:
            raise NotImplementedError(f"ON CONFLICT inserts not supported on {dialect}")
        return insert(cls)

    # READ OPERATIONS

    @classmethod
    def _base_query(cls, include_deleted: bool = False):
        query = select(cls)
        if not include_deleted:
            query = query.where(cls.deleted_at.is_(None))
        return query

    @classmethod
    async def get_by_id(
        cls: type[T], db: AsyncSession, id: Any, include_deleted: bool = False
    ) -> Optional[T]:
        """
        Get single record by primary key.

        Complexity: O(log n) via primary key index.
        """
        instance = await db.get(cls, id)
        if instance is None or (instance.is_deleted and not include_deleted):
            return None
        return instance

    @classmethod
    async def find_one(
        cls: type[T],
        db: AsyncSession,
        filters: Optional[Dict[str, Any]] = None,
        include_deleted: bool = False,
        **kwargs,
    ) -> Optional[T]:
        """
        Get first matching record.
        """
        query = cls._base_query(include_deleted)
        if filters:
            query = query.filter_by(**filters)
        if kwargs:
            query = query.filter_by(**kwargs)
        result = await db.execute(query.limit(1))
        return result.scalars().first()

    @classmethod
    async def find_many(
        cls: type[T],
        db: AsyncSession,
        limit: int = 100,
        offset: int = 0,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        order_desc: bool = False,
        include_deleted: bool = False,
        options: Optional[Sequence[Any]] = None,
        where: Optional[Sequence[Any]] = None,
        **kwargs,
    ) -> List[T]:
        """
        Get paginated list of records.
        `where` takes extra SQL expressions beyond equality filters.
        """
        limit = min(limit, 1000)
        query = cls._base_query(include_deleted).offset(offset).limit(limit)

        if filters:
            query = query.filter_by(**filters)

        if where:
            query = query.where(*where)

        if kwargs:
            query = query.filter_by(**kwargs)

        if options:
            query = query.options(*options)

        if order_by and hasattr(cls, order_by):
            column = getattr(cls, order_by)
            query = query.order_by(desc(column) if order_desc else asc(column))
        else:
            query = query.order_by(desc(cls.created_at))

        result = await db.execute(query)
        return list(result.scalars().all())

    @classmethod
    async def count(
        cls: type[T],
        db: AsyncSession,
        filters: Optional[Dict[str, Any]] = None,
        include_deleted: bool = False,
        where: Optional[Sequence[Any]] = None,
        **kwargs,
    ) -> int:
        """
        Count matching records.
        """
        query = select(func.count()).select_from(cls)
        if not include_deleted:
            query = query.where(cls.deleted_at.is_(None))

        if filters:
            query = query.filter_by(**filters)

        if where:
            query = query.where(*where)

        if kwargs:
            query = query.filter_by(**kwargs)

        result = await db.execute(query)
        return result.scalar_one()

    # UPDATE OPERATIONS

    async def save(self: T, db: AsyncSession, commit: bool = True) -> T:
        """
        Save changes to existing instance.
        """
        self.updated_at = utcnow()
        db.add(self)

        if commit:
            await db.commit()
            await db.refresh(self)
        else:
            await db.flush()

        return self

    async def soft_delete(self: T, db: AsyncSession, commit: bool = True) -> T:
        """Mark record as deleted without removing from DB (Audit-Safe)."""
        self.deleted_at = utcnow()
        return await self.save(db, commit=commit)

    async def restore(self: T, db: AsyncSession, commit: bool = True) -> T:
        """Clear the soft-delete marker."""
        self.deleted_at = None
        return await self.save(db, commit=commit)

    # PAGINATION HELPERS

    @classmethod
    async def paginate(
        cls: type[T],
        db: AsyncSession,
        page: int = 1,
        per_page: int = 20,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        order_desc: bool = False,
        where: Optional[Sequence[Any]] = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """
        Get paginated results with metadata.
        """
        per_page = min(max(per_page, 1), 100)
        page = max(page, 1)

        offset = (page - 1) * per_page

        total = await cls.count(db, filters=filters, where=where, **kwargs)

        items = await cls.find_many(
            db,
            filters=filters,
            limit=per_page,
            where=where,
            offset=offset,
            order_by=order_by,
            order_desc=order_desc,
            **kwargs,
        )

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
