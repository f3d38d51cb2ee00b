"""Item shapes for path, query, body and responses."""

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    StringConstraints,
    field_validator,
)

from itemkit.domain.items.models import NAME_MAX_LENGTH
from itemkit.infrastructure.database.base import BIGINT_MAX

ItemName = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=NAME_MAX_LENGTH),
]


class ItemIdParams(BaseModel):
    """Path parameters of ``/items/{id}``.

    IDs beyond the BIGINT range cannot exist and are rejected here.
    """

    id: int = Field(..., gt=0, le=BIGINT_MAX)


class ListItemsQuery(BaseModel):
    """Query string of ``GET /items``.

    ``sortBy`` and ``sortDirection`` accept any string; values outside the
    whitelist fall back to the default ordering instead of failing.
    """

    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(default=1, gt=0, le=BIGINT_MAX)
    limit: PositiveInt | None = None
    sort_by: str | None = Field(default=None, alias="sortBy")
    sort_direction: str | None = Field(default=None, alias="sortDirection")


class ItemCreate(BaseModel):
    """Body of ``POST /items``."""

    name: ItemName
    description: str | None = None


class ItemUpdate(BaseModel):
    """Body of ``PATCH /items/{id}``.

    Only the fields present in the body are applied; read them with
    ``changes()``. An explicit ``null`` description clears it.
    """

    name: ItemName | None = None
    description: str | None = None

    @field_validator("name", mode="after")
    @classmethod
    def name_not_null(cls, v: str | None) -> str:
        """Reject an explicit ``null`` name."""
        if v is None:
            msg = "name cannot be null"
            raise ValueError(msg)
        return v

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller sent."""
        return self.model_dump(exclude_unset=True)


class ItemOut(BaseModel):
    """A stored item."""

    id: int
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime


class PaginationOut(BaseModel):
    """Pagination envelope of a listing."""

    model_config = ConfigDict(populate_by_name=True)

    total: int
    page: int
    limit: int
    total_pages: int = Field(..., alias="totalPages")


class ItemListResponse(BaseModel):
    """Response of ``GET /items``."""

    success: Literal[True] = True
    data: list[ItemOut]
    pagination: PaginationOut


class ItemResponse(BaseModel):
    """Response of ``GET /items/{id}``."""

    success: Literal[True] = True
    data: ItemOut


class ItemCreatedResponse(BaseModel):
    """Response of ``POST /items``."""

    success: Literal[True] = True
    id: int
