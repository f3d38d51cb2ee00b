"""CRUD routes for items.

Every route requires a valid token; authentication runs before any input
validation.
"""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from itemkit.api.dependencies import get_item_service, require_auth
from itemkit.api.schemas.common import SuccessResponse
from itemkit.api.schemas.errors import ErrorResponse
from itemkit.api.schemas.items import (
    ItemCreate,
    ItemCreatedResponse,
    ItemIdParams,
    ItemListResponse,
    ItemResponse,
    ItemUpdate,
    ListItemsQuery,
)
from itemkit.api.utils.responses import success_response
from itemkit.api.validation import validate_body, validate_params, validate_query
from itemkit.domain.items import ItemService

router = APIRouter(
    prefix="/items",
    tags=["items"],
    dependencies=[Depends(require_auth)],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)

Service = Annotated[ItemService, Depends(get_item_service)]
PathParams = Annotated[ItemIdParams, Depends(validate_params(ItemIdParams))]


@router.get("", response_model=ItemListResponse)
async def list_items(
    query: Annotated[ListItemsQuery, Depends(validate_query(ListItemsQuery))],
    service: Service,
) -> dict[str, object]:
    """List one page of items."""
    page = await service.list_items(
        page=query.page,
        limit=query.limit,
        sort_by=query.sort_by,
        sort_direction=query.sort_direction,
    )
    return success_response(data=page.data, pagination=asdict(page.pagination))


@router.get(
    "/{id}", response_model=ItemResponse, responses={404: {"model": ErrorResponse}}
)
async def get_item(params: PathParams, service: Service) -> dict[str, object]:
    """Return one item."""
    return success_response(data=await service.get_item(params.id))


@router.post(
    "", response_model=ItemCreatedResponse, status_code=status.HTTP_201_CREATED
)
async def create_item(
    body: Annotated[ItemCreate, Depends(validate_body(ItemCreate))],
    service: Service,
) -> dict[str, object]:
    """Create an item and return its ID."""
    new_id = await service.create_item(body.model_dump())
    return success_response(id=new_id)


@router.patch(
    "/{id}", response_model=SuccessResponse, responses={404: {"model": ErrorResponse}}
)
async def update_item(
    params: PathParams,
    body: Annotated[ItemUpdate, Depends(validate_body(ItemUpdate))],
    service: Service,
) -> dict[str, object]:
    """Apply the fields present in the body to an item."""
    await service.update_item(params.id, body.changes())
    return success_response()


@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: {"model": ErrorResponse}},
)
async def delete_item(params: PathParams, service: Service) -> Response:
    """Delete an item."""
    await service.delete_item(params.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
