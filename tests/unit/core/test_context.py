"""Unit tests for request-scoped context."""

import asyncio

import pytest

from itemkit.core.context import (
    RequestContext,
    generate_correlation_id,
    generate_request_id,
)


@pytest.mark.unit
class TestRequestContext:
    """Test correlation ID storage."""

    def test_set_get_clear(self) -> None:
        """The stored ID is returned until cleared."""
        RequestContext.set_correlation_id("abc")
        assert RequestContext.get_correlation_id() == "abc"

        RequestContext.clear()
        assert RequestContext.get_correlation_id() is None

    async def test_isolated_between_tasks(self) -> None:
        """Concurrent requests do not see each other's IDs."""

        async def handle(correlation_id: str) -> str | None:
            RequestContext.set_correlation_id(correlation_id)
            await asyncio.sleep(0)
            return RequestContext.get_correlation_id()

        results = await asyncio.gather(handle("first"), handle("second"))

        assert results == ["first", "second"]


@pytest.mark.unit
def test_generated_ids_are_unique() -> None:
    """Generated IDs never repeat."""
    assert generate_correlation_id() != generate_correlation_id()
    assert generate_request_id().startswith("req-")
