"""Unit tests for request validation dependencies."""

from typing import Any

import pytest
from pydantic import BaseModel, PositiveInt
from starlette.requests import Request

from itemkit.api.schemas.items import ItemCreate, ItemIdParams, ListItemsQuery
from itemkit.api.validation import (
    INVALID_JSON_MESSAGE,
    NOT_AN_OBJECT_MESSAGE,
    issues_from_errors,
    read_json_object,
    validate_body,
    validate_data,
    validate_params,
    validate_query,
)
from itemkit.core.exceptions import ValidationError


def make_request(
    body: bytes = b"",
    query_string: bytes = b"",
    path_params: dict[str, Any] | None = None,
) -> Request:
    """Build a bare ASGI request with the given body, query and path params."""

    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": body, "more_body": False}

    scope = {
        "type": "http",
        "method": "POST",
        "path": "/items",
        "headers": [(b"content-type", b"application/json")],
        "query_string": query_string,
        "path_params": path_params or {},
    }
    return Request(scope, receive)


class Pair(BaseModel):
    """Two constrained fields for issue collection."""

    a: PositiveInt
    b: str


@pytest.mark.unit
class TestIssuesFromErrors:
    """Test conversion of Pydantic errors into issues."""

    def test_paths_are_dotted(self) -> None:
        """Nested locations are joined with dots."""
        issues = issues_from_errors(
            [{"loc": ("body", "tags", 0), "msg": "bad"}], "body"
        )

        assert issues == [{"path": "body.tags.0", "message": "bad"}]

    def test_region_prefix_can_be_skipped(self) -> None:
        """FastAPI's leading region element is dropped on request."""
        issues = issues_from_errors(
            [{"loc": ("query", "page"), "msg": "bad"}], "query", skip_region_prefix=True
        )

        assert issues == [{"path": "page", "message": "bad"}]

    def test_empty_location_uses_region(self) -> None:
        """Whole-region errors are reported against the region itself."""
        issues = issues_from_errors([{"loc": (), "msg": "bad"}], "body")

        assert issues[0]["path"] == "body"


@pytest.mark.unit
class TestValidateData:
    """Test validation of raw mappings."""

    def test_coerces_and_defaults(self) -> None:
        """Strings are coerced and absent fields get their defaults."""
        query = validate_data(ListItemsQuery, {"page": "2"}, "query")

        assert query.page == 2
        assert query.limit is None

    def test_every_violation_is_reported(self) -> None:
        """One issue per violated constraint, not just the first."""
        with pytest.raises(ValidationError) as exc_info:
            validate_data(Pair, {"a": 0}, "body")

        paths = {issue["path"] for issue in exc_info.value.issues}
        assert paths == {"a", "b"}
        assert exc_info.value.context["region"] == "body"
        assert exc_info.value.context["shape"] == "Pair"

    def test_cause_is_chained(self) -> None:
        """The Pydantic error is kept as the cause."""
        with pytest.raises(ValidationError) as exc_info:
            validate_data(ItemIdParams, {"id": "abc"}, "params")

        assert exc_info.value.cause is not None


@pytest.mark.unit
class TestReadJsonObject:
    """Test body parsing."""

    async def test_object_body(self) -> None:
        """A JSON object is returned as a dict."""
        assert await read_json_object(make_request(b'{"name": "a"}')) == {"name": "a"}

    @pytest.mark.parametrize("body", [b"", b"   "])
    async def test_empty_body_reads_as_empty_object(self, body: bytes) -> None:
        """A missing body is treated as no fields."""
        assert await read_json_object(make_request(body)) == {}

    async def test_invalid_json(self) -> None:
        """Malformed JSON is a validation failure on the body."""
        with pytest.raises(ValidationError) as exc_info:
            await read_json_object(make_request(b"{not json"))

        assert exc_info.value.issues == [
            {"path": "body", "message": INVALID_JSON_MESSAGE}
        ]

    @pytest.mark.parametrize("body", [b"[1, 2]", b'"text"', b"3"])
    async def test_non_object_json(self, body: bytes) -> None:
        """Only JSON objects are accepted."""
        with pytest.raises(ValidationError) as exc_info:
            await read_json_object(make_request(body))

        assert exc_info.value.issues[0]["message"] == NOT_AN_OBJECT_MESSAGE


@pytest.mark.unit
class TestDependencies:
    """Test the per-region dependency factories."""

    async def test_body_is_validated_and_stored(self) -> None:
        """The normalized body is returned and kept on request.state."""
        request = make_request(b'{"name": "  widget  "}')

        body = await validate_body(ItemCreate)(request)

        assert body.name == "widget"
        assert request.state.validated_body is body

    async def test_body_failure(self) -> None:
        """A body missing required fields fails with a path per field."""
        with pytest.raises(ValidationError) as exc_info:
            await validate_body(ItemCreate)(make_request(b"{}"))

        assert exc_info.value.issues[0]["path"] == "name"

    async def test_query_is_validated_and_stored(self) -> None:
        """Query values are coerced and aliases are honored."""
        request = make_request(query_string=b"page=3&limit=5&sortBy=name")

        query = await validate_query(ListItemsQuery)(request)

        assert (query.page, query.limit, query.sort_by) == (3, 5, "name")
        assert request.state.validated_query is query

    async def test_query_failure(self) -> None:
        """A non-positive page is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            await validate_query(ListItemsQuery)(make_request(query_string=b"page=0"))

        assert exc_info.value.issues[0]["path"] == "page"

    async def test_params_are_validated_and_stored(self) -> None:
        """Path parameters are coerced to their declared types."""
        request = make_request(path_params={"id": "12"})

        params = await validate_params(ItemIdParams)(request)

        assert params.id == 12
        assert request.state.validated_params is params

    @pytest.mark.parametrize("raw_id", ["abc", "0", "-3", "1.5"])
    async def test_params_failure(self, raw_id: str) -> None:
        """IDs must be positive integers."""
        with pytest.raises(ValidationError):
            await validate_params(ItemIdParams)(make_request(path_params={"id": raw_id}))
