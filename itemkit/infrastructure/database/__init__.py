"""Database infrastructure with async PostgreSQL and repository pattern.

Core components:
- **base**: Declarative base and common model fields
- **session**: Engine, pool and the ``Database`` handle
- **repository**: Generic repository, partial updates and sort resolution
- **dependencies**: FastAPI dependency returning the application's handle

All database operations are async-first, using the asyncpg driver.
"""

from itemkit.infrastructure.database.base import Base, BaseModel
from itemkit.infrastructure.database.dependencies import DatabaseHandle, get_database
from itemkit.infrastructure.database.repository import (
    BaseRepository,
    PartialUpdate,
    SortDirection,
    resolve_sort_field,
)
from itemkit.infrastructure.database.session import Database, create_database_engine

__all__ = [
    "Base",
    "BaseModel",
    "BaseRepository",
    "Database",
    "DatabaseHandle",
    "PartialUpdate",
    "SortDirection",
    "create_database_engine",
    "get_database",
    "resolve_sort_field",
]
