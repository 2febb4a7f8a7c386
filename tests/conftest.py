"""Shared fixtures for junction tests."""

import pytest

from junction.app import App
from junction.config import RouterConfig


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def app() -> App:
    return App(RouterConfig(nonce_secret="test-secret"))


class FakeStore:
    """``StoreQuery`` over in-memory tables: ``{table: [row, ...]}``."""

    def __init__(self, tables: dict[str, list[dict]]) -> None:
        self.tables = tables
        self.queries: list[tuple] = []

    def count(self, table: str, column: str, value: object, exclude_id: object = None) -> int:
        self.queries.append((table, column, value, exclude_id))
        rows = self.tables.get(table, [])
        return sum(
            1
            for row in rows
            if str(row.get(column)) == str(value) and (exclude_id is None or str(row.get("id")) != str(exclude_id))
        )


@pytest.fixture
def store() -> FakeStore:
    return FakeStore(
        {
            "users": [
                {"id": 1, "email": "taken@example.com"},
                {"id": 2, "email": "other@example.com"},
            ],
            "categories": [{"id": 7, "slug": "news"}],
        }
    )
