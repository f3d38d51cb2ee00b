"""Business rules for items.

The service owns pagination math, sort normalization, existence checks
before mutations and partial update construction. It reaches storage only
through the ``ItemStore`` given at construction.
"""

import asyncio
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger

from itemkit.core.config import PaginationConfig
from itemkit.core.exceptions import NotFoundError
from itemkit.core.observability import trace_operation
from itemkit.domain.items.models import Item
from itemkit.domain.items.repository import (
    DEFAULT_SORT_FIELD,
    SORTABLE_FIELDS,
    ItemRecord,
    ItemStore,
)
from itemkit.infrastructure.database.base import BIGINT_MAX
from itemkit.infrastructure.database.repository import (
    PartialUpdate,
    SortDirection,
    resolve_sort_field,
)

ITEM_NOT_FOUND_MESSAGE = "Item not found"


@dataclass(frozen=True, slots=True)
class Pagination:
    """Position of a page within the full collection."""

    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def compute(cls, total: int, page: int, limit: int) -> "Pagination":
        """Derive ``total_pages`` as ``ceil(total / limit)``.

        Examples:
            >>> Pagination.compute(total=21, page=1, limit=10).total_pages
            3
            >>> Pagination.compute(total=0, page=1, limit=10).total_pages
            0
        """
        return cls(
            total=total, page=page, limit=limit, total_pages=math.ceil(total / limit)
        )


@dataclass(frozen=True, slots=True)
class ItemPage:
    """One page of items together with its pagination envelope."""

    data: list[ItemRecord]
    pagination: Pagination


class ItemService:
    """Use cases for the items resource.

    Args:
        store: Backing store for items.
        pagination_config: Default and maximum page sizes.
    """

    def __init__(self, store: ItemStore, pagination_config: PaginationConfig) -> None:
        self.store = store
        self.pagination_config = pagination_config

    def effective_limit(self, limit: int | None) -> int:
        """Clamp a requested page size to the configured maximum."""
        requested = limit or self.pagination_config.default_page_limit
        return min(requested, self.pagination_config.max_page_limit)

    async def list_items(
        self,
        page: int = 1,
        limit: int | None = None,
        sort_by: str | None = None,
        sort_direction: str | None = None,
    ) -> ItemPage:
        """Return one page of items and the pagination envelope.

        Unknown sort fields fall back to ``created_at`` and unknown
        directions to descending. A page past the end yields no data.

        Args:
            page: 1-based page number.
            limit: Requested page size; the configured default when absent.
            sort_by: Field to order by.
            sort_direction: ``asc`` or ``desc``, case-insensitive.

        Returns:
            ItemPage: The page and its pagination envelope.
        """
        effective_limit = self.effective_limit(limit)
        offset = (page - 1) * effective_limit
        sort_field = resolve_sort_field(sort_by, SORTABLE_FIELDS, DEFAULT_SORT_FIELD)
        direction = SortDirection.normalize(sort_direction)

        with trace_operation(
            "items.list", page=page, limit=effective_limit, sort_by=sort_field
        ):
            if offset > BIGINT_MAX:
                # Past any possible row; the store cannot bind such an offset
                data, total = [], await self.store.count()
            else:
                data, total = await asyncio.gather(
                    self.store.find_page(
                        effective_limit, offset, sort_field, direction
                    ),
                    self.store.count(),
                )

        logger.debug(
            "Listed items - page: {}, limit: {}, total: {}",
            page,
            effective_limit,
            total,
        )
        return ItemPage(
            data=data,
            pagination=Pagination.compute(total=total, page=page, limit=effective_limit),
        )

    async def get_item(self, item_id: int) -> ItemRecord:
        """Return one item.

        Raises:
            NotFoundError: If no item has this ID.
        """
        item = await self.store.get_by_id(item_id)
        if item is None:
            raise NotFoundError(ITEM_NOT_FOUND_MESSAGE, context={"item_id": item_id})
        return item

    async def create_item(self, data: Mapping[str, Any]) -> int:
        """Store a new item and return its ID."""
        return await self.store.insert(data)

    async def update_item(self, item_id: int, changes: Mapping[str, Any]) -> int:
        """Apply the present fields of ``changes`` to an existing item.

        Args:
            item_id: ID of the item to update.
            changes: Only the fields the caller sent; an explicit ``None``
                description clears it.

        Returns:
            int: Affected rows, 0 for an empty ``changes``.

        Raises:
            NotFoundError: If no item has this ID.
        """
        await self.get_item(item_id)
        update = PartialUpdate.from_mapping(Item.updatable_columns, changes)
        return await self.store.update(item_id, update)

    async def delete_item(self, item_id: int) -> int:
        """Delete an existing item.

        Raises:
            NotFoundError: If no item has this ID, including on a repeated
                delete.
        """
        await self.get_item(item_id)
        return await self.store.delete(item_id)
