"""Root conftest.py for the itemkit test suite.

This file contains project-wide fixtures and pytest configuration. No test
needs PostgreSQL: the item store is replaced by ``InMemoryItemStore`` and
the database handle by ``FakeDatabase``.
"""

from collections.abc import AsyncGenerator, Generator, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from itemkit.api.dependencies import get_item_store
from itemkit.api.main import create_app
from itemkit.core.config import (
    LogConfig,
    ObservabilityConfig,
    Settings,
    get_settings,
)
from itemkit.core.context import RequestContext
from itemkit.core.error_context import _get_sensitive_fields
from itemkit.core.security import issue_token
from itemkit.infrastructure.database.repository import PartialUpdate, SortDirection

TEST_PASSWORD = "correct horse battery staple"
TEST_JWT_SECRET = "unit-test-signing-secret-with-32-bytes!"


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test multiple components"
    )


class InMemoryItemStore:
    """``ItemStore`` keeping items in a dict.

    Timestamps come from a clock that advances one second per write, so
    ``updated_at`` is strictly greater than ``created_at`` after an update.
    """

    def __init__(self) -> None:
        self.records: dict[int, dict[str, Any]] = {}
        self.calls: list[str] = []
        self._next_id = 1
        self._clock = datetime(2024, 1, 1, tzinfo=UTC)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    async def find_page(
        self, limit: int, offset: int, sort_by: str, sort_direction: SortDirection
    ) -> list[dict[str, Any]]:
        self.calls.append("find_page")
        rows = sorted(
            self.records.values(),
            key=lambda row: (row[sort_by], row["id"]),
            reverse=sort_direction is SortDirection.DESC,
        )
        return [dict(row) for row in rows[offset : offset + limit]]

    async def count(self) -> int:
        self.calls.append("count")
        return len(self.records)

    async def get_by_id(self, item_id: int) -> dict[str, Any] | None:
        self.calls.append("get_by_id")
        record = self.records.get(item_id)
        return dict(record) if record is not None else None

    async def insert(self, data: Mapping[str, Any]) -> int:
        self.calls.append("insert")
        item_id = self._next_id
        self._next_id += 1
        now = self._tick()
        self.records[item_id] = {
            "id": item_id,
            "name": data["name"],
            "description": data.get("description"),
            "created_at": now,
            "updated_at": now,
        }
        return item_id

    async def update(self, item_id: int, changes: PartialUpdate) -> int:
        if changes.is_empty:
            return 0
        self.calls.append("update")
        record = self.records.get(item_id)
        if record is None:
            return 0
        record.update(changes.values())
        record["updated_at"] = self._tick()
        return 1

    async def delete(self, item_id: int) -> int:
        self.calls.append("delete")
        return 1 if self.records.pop(item_id, None) is not None else 0


class FakeDatabase:
    """Stand-in for ``Database`` with a switchable health state."""

    def __init__(self, healthy: bool = True) -> None:
        self.engine = None
        self.healthy = healthy
        self.closed = False
        self.schema_created = False

    async def check_connection(self) -> tuple[bool, str | None]:
        if self.healthy:
            return True, None
        return False, "connection refused"

    async def create_schema(self) -> None:
        self.schema_created = True

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def clean_caches() -> Generator[None]:
    """Clear cached settings and request context around each test."""
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()
    RequestContext.clear()
    yield
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()
    RequestContext.clear()


@pytest.fixture(scope="session")
def password_hash() -> str:
    """bcrypt hash of ``TEST_PASSWORD`` with a cheap work factor."""
    return bcrypt.hashpw(TEST_PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()


@pytest.fixture
def test_settings(password_hash: str) -> Settings:
    """Settings for the test environment with a known credential."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        environment="test",
        jwt_secret=TEST_JWT_SECRET,  # type: ignore[arg-type]
        password_hash=password_hash,  # type: ignore[arg-type]
        log_config=LogConfig(log_level="WARNING"),
        observability_config=ObservabilityConfig(enable_tracing=False),
    )


@pytest.fixture
def item_store() -> InMemoryItemStore:
    """Empty in-memory item store."""
    return InMemoryItemStore()


@pytest.fixture
def fake_database() -> FakeDatabase:
    """Healthy fake database handle."""
    return FakeDatabase()


@pytest.fixture
def app(
    test_settings: Settings,
    fake_database: FakeDatabase,
    item_store: InMemoryItemStore,
) -> FastAPI:
    """Application wired to the in-memory store."""
    application = create_app(test_settings, database=fake_database)  # type: ignore[arg-type]
    application.dependency_overrides[get_item_store] = lambda: item_store
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """HTTP client calling the application in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_token(test_settings: Settings) -> str:
    """A valid token for the test settings."""
    return issue_token(
        test_settings.jwt_secret.get_secret_value(),
        test_settings.auth_config.token_expiry_seconds,
    )


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Authorization header carrying a valid token."""
    return {"Authorization": f"Bearer {auth_token}"}
