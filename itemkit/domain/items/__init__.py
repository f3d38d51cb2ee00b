"""Items: the example relational resource.

- **models**: the ``items`` table
- **repository**: ``ItemStore`` protocol and its SQLAlchemy implementation
- **service**: pagination, existence checks and partial updates
"""

from itemkit.domain.items.models import Item
from itemkit.domain.items.repository import (
    DEFAULT_SORT_FIELD,
    SORTABLE_FIELDS,
    ItemRepository,
    ItemStore,
)
from itemkit.domain.items.service import ItemPage, ItemService, Pagination

__all__ = [
    "DEFAULT_SORT_FIELD",
    "SORTABLE_FIELDS",
    "Item",
    "ItemPage",
    "ItemRepository",
    "ItemService",
    "ItemStore",
    "Pagination",
]
