"""Persistence for items.

``ItemStore`` is the interface the service depends on. ``ItemRepository``
implements it on PostgreSQL; any object with the same methods (an in-memory
store in tests, for instance) can be injected instead.
"""

from collections.abc import Mapping
from typing import Any, Final, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from itemkit.domain.items.models import Item
from itemkit.infrastructure.database.repository import (
    BaseRepository,
    PartialUpdate,
    SortDirection,
    resolve_sort_field,
)

SORTABLE_FIELDS: Final[frozenset[str]] = frozenset(
    {"id", "name", "created_at", "updated_at"}
)
DEFAULT_SORT_FIELD: Final[str] = "created_at"

type ItemRecord = dict[str, Any]


class ItemStore(Protocol):
    """Operations the item service needs from a backing store."""

    async def find_page(
        self, limit: int, offset: int, sort_by: str, sort_direction: SortDirection
    ) -> list[ItemRecord]:
        """Return one ordered window of items."""
        ...

    async def count(self) -> int:
        """Return the total number of items."""
        ...

    async def get_by_id(self, item_id: int) -> ItemRecord | None:
        """Return one item, or None when it does not exist."""
        ...

    async def insert(self, data: Mapping[str, Any]) -> int:
        """Store a new item and return its identifier."""
        ...

    async def update(self, item_id: int, changes: PartialUpdate) -> int:
        """Apply present fields and return the number of affected rows."""
        ...

    async def delete(self, item_id: int) -> int:
        """Remove an item and return the number of affected rows."""
        ...


class ItemRepository(BaseRepository[Item]):
    """``ItemStore`` backed by the ``items`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        super().__init__(session_factory, Item)

    async def find_page(
        self, limit: int, offset: int, sort_by: str, sort_direction: SortDirection
    ) -> list[ItemRecord]:
        """Return one ordered window of items as plain records.

        Args:
            limit: Maximum number of items.
            offset: Number of items to skip.
            sort_by: Requested sort field; re-checked against the whitelist.
            sort_direction: Ordering direction, also applied to the id tiebreak.

        Returns:
            list[ItemRecord]: The window, possibly empty.
        """
        sort_field = resolve_sort_field(sort_by, SORTABLE_FIELDS, DEFAULT_SORT_FIELD)
        rows = await self.get_page(
            limit, offset, self.order_clauses(sort_field, sort_direction)
        )
        return [row.to_dict() for row in rows]

    async def get_by_id(self, item_id: int) -> ItemRecord | None:  # type: ignore[override]
        """Return one item as a plain record.

        Args:
            item_id: ID of the item.

        Returns:
            ItemRecord | None: The item, or None when it does not exist.
        """
        item = await super().get_by_id(item_id)
        return item.to_dict() if item is not None else None

    async def insert(self, data: Mapping[str, Any]) -> int:
        """Store a new item from its name and optional description.

        Args:
            data: Validated creation fields; other keys are ignored.

        Returns:
            int: The store-assigned ID.
        """
        return await super().insert(
            {"name": data["name"], "description": data.get("description")}
        )
