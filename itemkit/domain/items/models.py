"""SQLAlchemy model for the ``items`` table."""

from typing import ClassVar

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from itemkit.infrastructure.database.base import BaseModel

NAME_MAX_LENGTH = 255


class Item(BaseModel):
    """A named record with an optional description."""

    __tablename__ = "items"

    updatable_columns: ClassVar[frozenset[str]] = frozenset({"name", "description"})

    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
