"""Request validation against declared Pydantic shapes.

Each factory returns a FastAPI dependency that validates exactly one region
of the request (body, query string or path parameters) and returns the
normalized model. Pydantic's lax mode coerces values before constraints are
checked (``"2"`` becomes ``2``) and fills defaults for absent fields.

The normalized model is also stored whole on ``request.state`` as
``validated_body``, ``validated_query`` or ``validated_params``.

Every violated constraint becomes one ``{"path", "message"}`` issue on the
raised ``ValidationError``.
"""

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Literal

import orjson
from fastapi import Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from itemkit.core.exceptions import ValidationError

type Region = Literal["body", "query", "params"]

INVALID_JSON_MESSAGE = "Request body must be valid JSON"
NOT_AN_OBJECT_MESSAGE = "Request body must be a JSON object"
REGION_PREFIXES = frozenset({"body", "query", "path"})


def issues_from_errors(
    errors: list[Any], region: Region, skip_region_prefix: bool = False
) -> list[dict[str, str]]:
    """Convert Pydantic error entries into ``{"path", "message"}`` issues.

    Args:
        errors: Output of ``ValidationError.errors()``.
        region: Region name used when an error has no field location.
        skip_region_prefix: Drop a leading ``body``/``query``/``path`` location
            element, as added by FastAPI's own request validation.

    Returns:
        list[dict[str, str]]: One issue per violated constraint.
    """
    issues = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ())]
        if skip_region_prefix and location and location[0] in REGION_PREFIXES:
            location = location[1:]
        issues.append(
            {
                "path": ".".join(location) or region,
                "message": error.get("msg", "Invalid value"),
            }
        )
    return issues


def validate_data[M: BaseModel](
    model: type[M], data: Mapping[str, Any], region: Region
) -> M:
    """Validate raw data against ``model``.

    Raises:
        ValidationError: With one issue per violated constraint.
    """
    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise ValidationError(
            issues_from_errors(exc.errors(), region),
            context={"region": region, "shape": model.__name__},
            cause=exc,
        ) from exc


async def read_json_object(request: Request) -> dict[str, Any]:
    """Read the request body as a JSON object.

    A missing or empty body reads as ``{}``.

    Raises:
        ValidationError: If the body is not valid JSON or not an object.
    """
    raw = await request.body()
    if not raw.strip():
        return {}

    try:
        payload = orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise ValidationError(
            [{"path": "body", "message": INVALID_JSON_MESSAGE}], cause=exc
        ) from exc

    if not isinstance(payload, dict):
        raise ValidationError([{"path": "body", "message": NOT_AN_OBJECT_MESSAGE}])
    return payload


def validate_body[M: BaseModel](model: type[M]) -> Callable[[Request], Awaitable[M]]:
    """Build a dependency validating the JSON body against ``model``."""

    async def dependency(request: Request) -> M:
        validated = validate_data(model, await read_json_object(request), "body")
        request.state.validated_body = validated
        return validated

    return dependency


def validate_query[M: BaseModel](model: type[M]) -> Callable[[Request], Awaitable[M]]:
    """Build a dependency validating the query string against ``model``.

    A repeated parameter keeps its last value.
    """

    async def dependency(request: Request) -> M:
        validated = validate_data(model, dict(request.query_params), "query")
        request.state.validated_query = validated
        return validated

    return dependency


def validate_params[M: BaseModel](model: type[M]) -> Callable[[Request], Awaitable[M]]:
    """Build a dependency validating the path parameters against ``model``."""

    async def dependency(request: Request) -> M:
        validated = validate_data(model, request.path_params, "params")
        request.state.validated_params = validated
        return validated

    return dependency
