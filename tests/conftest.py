"""
Shared test fixtures.

The mock Supabase client keeps rows per table and applies the filters the
services use (eq, neq, ilike, is_ null, or_ ilike), ordering, paging and
writes, so service and route tests run against real query semantics.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are loaded at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("API_TOKENS", "test-token,second-token")

import re
import pytest
from unittest.mock import patch
from contextlib import ExitStack
from datetime import datetime, timedelta
from typing import Generator
from uuid import uuid4

SERVICE_MODULES = [
    "services.manual_resolver",
    "services.product_service",
    "services.manual_service",
    "services.activity_log_service",
    "services.dashboard_service",
]

ADMIN_SERVICE_MODULES = [
    "services.product_service",
    "services.manual_service",
]

SINGLETONS = {
    "services.manual_resolver": "_manual_resolver",
    "services.product_service": "_product_service",
    "services.manual_service": "_manual_service",
    "services.activity_log_service": "_activity_log_service",
    "services.dashboard_service": "_dashboard_service",
}


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


def _ilike(value, pattern: str) -> bool:
    if value is None:
        return False
    regex = "^" + ".*".join(re.escape(part) for part in pattern.split("%")) + "$"
    return re.match(regex, str(value), re.IGNORECASE) is not None


class MockSupabaseQuery:
    """Chainable query over one mock table."""

    def __init__(self, table: "MockSupabaseTable", action: str = "select", payload=None):
        self._table = table
        self._action = action
        self._payload = payload
        self._filters = []
        self._order = None
        self._range = None
        self._limit = None

    def select(self, *args, **kwargs):
        return self

    # Filters

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def ilike(self, column, pattern):
        self._filters.append(lambda row: _ilike(row.get(column), pattern))
        return self

    def is_(self, column, value):
        if value == "null":
            self._filters.append(lambda row: row.get(column) is None)
        else:
            self._filters.append(lambda row: row.get(column) == value)
        return self

    def or_(self, expression: str):
        conditions = []
        for part in expression.split(","):
            column, operator, value = part.split(".", 2)
            if operator == "ilike":
                conditions.append(lambda row, c=column, v=value: _ilike(row.get(c), v))
            else:
                conditions.append(lambda row, c=column, v=value: str(row.get(c)) == v)
        self._filters.append(lambda row: any(cond(row) for cond in conditions))
        return self

    # Shaping

    def order(self, column, desc: bool = False, **kwargs):
        self._order = (column, desc)
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row: dict) -> bool:
        return all(f(row) for f in self._filters)

    def execute(self) -> MockSupabaseResponse:
        self._table.client.check_failure(self._table.name, self._action)

        if self._action == "insert":
            return MockSupabaseResponse(data=self._table.add(self._payload))

        if self._action == "update":
            updated = []
            for row in self._table.rows:
                if self._matches(row):
                    row.update(self._payload)
                    row["updated_at"] = self._table.client.next_timestamp()
                    updated.append(dict(row))
            return MockSupabaseResponse(data=updated)

        if self._action == "delete":
            removed = [row for row in self._table.rows if self._matches(row)]
            self._table.rows = [row for row in self._table.rows if not self._matches(row)]
            return MockSupabaseResponse(data=removed)

        rows = [dict(row) for row in self._table.rows if self._matches(row)]
        if self._order:
            column, desc = self._order
            rows.sort(key=lambda row: row.get(column) or "", reverse=desc)

        total = self._table.count if self._table.count is not None else len(rows)

        if self._range:
            start, end = self._range
            rows = rows[start:end + 1]
        if self._limit is not None:
            rows = rows[:self._limit]

        return MockSupabaseResponse(data=rows, count=total)


class MockSupabaseTable:
    """Mock Supabase table holding its rows in memory."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self.client = client
        self.name = name
        self.rows: list[dict] = []
        self.count = None

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self, "select")

    def insert(self, data):
        return MockSupabaseQuery(self, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self, "update", data)

    def delete(self):
        return MockSupabaseQuery(self, "delete")

    def add(self, data) -> list[dict]:
        items = data if isinstance(data, list) else [data]
        added = []
        for item in items:
            row = dict(item)
            row.setdefault("id", str(uuid4()))
            row.setdefault("created_at", self.client.next_timestamp())
            row.setdefault("updated_at", row["created_at"])
            self.rows.append(row)
            added.append(dict(row))
        return added


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}
        self._failures: set = set()
        self._clock = datetime(2026, 1, 1)

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Replace the rows of a table. count overrides the reported total."""
        table = self.table(table_name)
        table.rows = []
        table.add(data)
        table.count = count

    def rows(self, table_name: str) -> list[dict]:
        return self.table(table_name).rows

    def fail_on(self, table_name: str, action: str = "select"):
        """Make every `action` on `table_name` raise."""
        self._failures.add((table_name, action))

    def check_failure(self, table_name: str, action: str):
        if (table_name, action) in self._failures:
            raise Exception(f"connection refused ({table_name}.{action})")

    def next_timestamp(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat() + "Z"

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable(self, name)
        return self._tables[name]


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"id": "1", "serial_number": "2504485", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture(autouse=True)
def reset_singletons():
    """Drop cached service instances so each test builds its own."""
    import importlib

    def reset():
        for module_name, attr in SINGLETONS.items():
            setattr(importlib.import_module(module_name), attr, None)

    reset()
    yield
    reset()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with ExitStack() as stack:
        stack.enter_context(patch("config.database.get_supabase_client", return_value=mock_supabase))
        for module_name in SERVICE_MODULES:
            stack.enter_context(patch(f"{module_name}.get_supabase_client", return_value=mock_supabase))
        for module_name in ADMIN_SERVICE_MODULES:
            stack.enter_context(patch(f"{module_name}.get_admin_client", return_value=None))
        yield mock_supabase


@pytest.fixture
def manual_store(mock_supabase):
    """
    Product 2504485 with the IT and EN variants of MVC_STD revision 001.

    The EN row is older, so the store returns IT first.
    """
    from tests.factories import ProductFactory, ManualFactory

    mock_supabase.set_table_data("products", [
        ProductFactory.create(
            id="prod-1",
            serial_number="2504485",
            manual_code="MVC_STD",
            revision_code="001"
        )
    ])
    mock_supabase.set_table_data("manuals", [
        ManualFactory.create(
            id="man-en",
            manual_code="MVC_STD",
            language="EN",
            revision_code="001",
            description=None,
            file_url="url-en",
            created_at="2025-12-01T10:00:00Z"
        ),
        ManualFactory.create(
            id="man-it",
            manual_code="MVC_STD",
            language="IT",
            revision_code="001",
            description="Manuale IT",
            file_url="url-it",
            created_at="2025-12-02T10:00:00Z"
        ),
    ])
    return mock_supabase


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": "Bearer test-token"}


@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            response = test_client_with_mock_db.get("/api/search?serial_number=1")
    """
    from fastapi.testclient import TestClient
    from main import app

    yield TestClient(app)
