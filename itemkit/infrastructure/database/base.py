"""SQLAlchemy declarative base and common model fields.

Key components:
- **Naming conventions**: Standardized constraint names
- **Base class**: Configured declarative base with metadata
- **BaseModel**: Abstract model with the store-assigned fields (id, timestamps)

Identifiers come from a database sequence and are never reused. Both
timestamps are assigned by the database; ``updated_at`` is refreshed by
every UPDATE statement, ORM or Core, so it never falls behind
``created_at``.
"""

from datetime import datetime
from typing import Any, ClassVar

from sqlalchemy import BigInteger, DateTime, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Largest value a BIGINT column or a LIMIT/OFFSET parameter can hold
BIGINT_MAX = 2**63 - 1

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base sharing one metadata with naming conventions."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class BaseModel(Base):
    """Abstract model carrying the fields every stored record has.

    Subclasses list the columns a caller may change in ``updatable_columns``;
    partial updates reject anything outside that set.
    """

    __abstract__ = True

    updatable_columns: ClassVar[frozenset[str]] = frozenset()

    id: Mapped[int] = mapped_column(
        BigInteger,
        primary_key=True,
        autoincrement=True,
        doc="Store-assigned identifier",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Timestamp when the record was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        doc="Timestamp when the record was last modified (UTC)",
    )

    def to_dict(self) -> dict[str, Any]:
        """Return the mapped column values keyed by column name."""
        return {
            column.key: getattr(self, column.key) for column in self.__table__.columns
        }

    def __repr__(self) -> str:
        """Return the model class name and ID."""
        return f"<{self.__class__.__name__}(id={self.id})>"
