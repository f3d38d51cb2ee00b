"""Base repository pattern implementation for database operations.

This module provides a generic repository base class implementing paged
reads, counting, lookup, insertion, partial update and deletion for
SQLAlchemy models using async patterns.

Each operation opens its own session from the injected session factory, so
independent reads (a page and its total) can run concurrently on separate
pooled connections.
"""

from collections.abc import AsyncGenerator, Iterator, Mapping
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any

from loguru import logger
from sqlalchemy import delete as sql_delete
from sqlalchemy import func, insert, select
from sqlalchemy import update as sql_update
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.elements import ColumnElement

from itemkit.core.exceptions import PoolExhaustedError
from itemkit.infrastructure.database.base import BaseModel


class SortDirection(Enum):
    """Ordering direction for paged reads."""

    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def normalize(cls, value: str | None) -> "SortDirection":
        """Normalize a caller-supplied direction, case-insensitively.

        Anything other than ``asc``/``desc`` in any case yields ``DESC``.

        Examples:
            >>> SortDirection.normalize("asc")
            <SortDirection.ASC: 'ASC'>
            >>> SortDirection.normalize("sideways")
            <SortDirection.DESC: 'DESC'>
        """
        if isinstance(value, str) and value.strip().upper() == cls.ASC.value:
            return cls.ASC
        return cls.DESC


def resolve_sort_field(
    sort_by: str | None, allowed: frozenset[str], default: str
) -> str:
    """Return ``sort_by`` if it is whitelisted, else ``default``.

    Only whitelisted names ever reach an ORDER BY clause.
    """
    if isinstance(sort_by, str) and sort_by in allowed:
        return sort_by
    return default


class PartialUpdate:
    """Accumulates the explicitly present fields of an update.

    Only columns named in ``allowed`` can be set. An empty builder means
    there is nothing to write; repositories return 0 affected rows for it
    without building a statement.

    Example:
        changes = PartialUpdate(Item.updatable_columns).set("name", "a")
        await repository.update(item_id, changes)
    """

    def __init__(self, allowed: frozenset[str]) -> None:
        self._allowed = allowed
        self._values: dict[str, Any] = {}

    @classmethod
    def from_mapping(
        cls, allowed: frozenset[str], values: Mapping[str, Any]
    ) -> "PartialUpdate":
        """Build a partial update from the present keys of a mapping."""
        builder = cls(allowed)
        for column, value in values.items():
            builder.set(column, value)
        return builder

    def set(self, column: str, value: Any) -> "PartialUpdate":  # noqa: ANN401
        """Record a value for an updatable column.

        Raises:
            ValueError: If the column may not be updated.
        """
        if column not in self._allowed:
            msg = f"Column '{column}' is not updatable"
            raise ValueError(msg)
        self._values[column] = value
        return self

    @property
    def is_empty(self) -> bool:
        """Whether no field is present."""
        return not self._values

    @property
    def columns(self) -> list[str]:
        """Names of the present columns, in insertion order."""
        return list(self._values)

    def values(self) -> dict[str, Any]:
        """Return a copy of the present ``column -> value`` pairs."""
        return dict(self._values)

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        """Iterate over the present ``(column, value)`` pairs."""
        return iter(self._values.items())

    def __len__(self) -> int:
        """Return the number of present fields."""
        return len(self._values)


class BaseRepository[T: BaseModel]:
    """Base repository class providing common data access operations.

    Args:
        session_factory: Factory producing sessions bound to the shared pool.
        model_class: The SQLAlchemy model class this repository manages.

    Example:
        class ItemRepository(BaseRepository[Item]):
            def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
                super().__init__(session_factory, Item)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        model_class: type[T],
    ) -> None:
        self.session_factory = session_factory
        self.model_class = model_class
        logger.debug("Initialized repository for {}", model_class.__name__)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """Open a session for one operation.

        The session commits on success and rolls back on error. A pool
        checkout that exceeds the pool timeout surfaces as
        ``PoolExhaustedError``.

        Yields:
            AsyncGenerator[AsyncSession]: Session bound to a pooled connection.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except PoolTimeoutError as exc:
                await session.rollback()
                logger.error(
                    "Timed out waiting for a pooled connection",
                    model=self.model_class.__name__,
                )
                raise PoolExhaustedError(
                    context={"model": self.model_class.__name__}, cause=exc
                ) from exc
            except Exception:
                await session.rollback()
                logger.debug("Database session rolled back due to error")
                raise

    def order_clauses(
        self, sort_field: str, direction: SortDirection
    ) -> list[ColumnElement[Any]]:
        """Build ORDER BY clauses with an ``id`` tiebreak in the same direction."""
        column = getattr(self.model_class, sort_field)
        id_column = self.model_class.id
        if direction is SortDirection.ASC:
            clauses = [column.asc(), id_column.asc()]
        else:
            clauses = [column.desc(), id_column.desc()]
        return clauses if sort_field != "id" else clauses[:1]

    async def get_by_id(self, entity_id: int) -> T | None:
        """Retrieve a model instance by its ID.

        Args:
            entity_id: The primary key ID of the model to retrieve.

        Returns:
            T | None: The model instance if found, None otherwise.
        """
        logger.debug("Fetching {} by ID: {}", self.model_class.__name__, entity_id)

        async with self.session() as session:
            stmt = select(self.model_class).where(self.model_class.id == entity_id)
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def get_page(
        self,
        limit: int,
        offset: int,
        order_by: list[ColumnElement[Any]],
    ) -> list[T]:
        """Retrieve one window of rows in a fixed order.

        Args:
            limit: Maximum number of rows.
            offset: Number of rows to skip.
            order_by: Ordering clauses, usually from ``order_clauses``.

        Returns:
            list[T]: The rows of the window, possibly empty.
        """
        logger.debug(
            "Fetching {} page - limit: {}, offset: {}",
            self.model_class.__name__,
            limit,
            offset,
        )

        async with self.session() as session:
            stmt = (
                select(self.model_class).order_by(*order_by).limit(limit).offset(offset)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def count(self) -> int:
        """Count all instances of the model.

        Returns:
            int: The total number of instances.
        """
        async with self.session() as session:
            stmt = select(func.count()).select_from(self.model_class)
            result = await session.execute(stmt)
            return result.scalar() or 0

    async def insert(self, values: Mapping[str, Any]) -> int:
        """Insert a row and return its store-assigned ID.

        Args:
            values: Column values of the new row.

        Returns:
            int: The new primary key.
        """
        async with self.session() as session:
            stmt = (
                insert(self.model_class)
                .values(**dict(values))
                .returning(self.model_class.id)
            )
            result = await session.execute(stmt)
            new_id = result.scalar_one()

        logger.info("Created {} instance with ID: {}", self.model_class.__name__, new_id)
        return new_id

    async def update(self, entity_id: int, changes: PartialUpdate) -> int:
        """Apply the present fields of ``changes`` to one row.

        Args:
            entity_id: The primary key ID of the row to update.
            changes: Present-only field values.

        Returns:
            int: Number of affected rows; 0 without a round trip when
            ``changes`` is empty.
        """
        if changes.is_empty:
            logger.debug(
                "Empty update for {} ID {} - nothing to write",
                self.model_class.__name__,
                entity_id,
            )
            return 0

        async with self.session() as session:
            stmt = (
                sql_update(self.model_class)
                .where(self.model_class.id == entity_id)
                .values(**changes.values())
            )
            result = await session.execute(stmt)
            affected = result.rowcount or 0

        logger.info(
            "Updated {} instance ID {} - fields: {}",
            self.model_class.__name__,
            entity_id,
            changes.columns,
        )
        return affected

    async def delete(self, entity_id: int) -> int:
        """Delete a row by its ID.

        Args:
            entity_id: The primary key ID of the row to delete.

        Returns:
            int: Number of deleted rows (0 or 1).
        """
        async with self.session() as session:
            stmt = sql_delete(self.model_class).where(self.model_class.id == entity_id)
            result = await session.execute(stmt)
            affected = result.rowcount or 0

        if affected:
            logger.info(
                "Deleted {} instance with ID: {}", self.model_class.__name__, entity_id
            )
        return affected
