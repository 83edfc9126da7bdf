# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - FakeSupabase: an in-memory stand-in for the supabase-py query builder
# - Staff/student users and a TestClient with auth overridden
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import copy
import re
from datetime import datetime, timezone
from typing import Any
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from app.auth.models import AuthUser, StaffUser, UserRole
from lib.supabase_client import SupabaseClient


# =============================================================================
# Fake Supabase
# =============================================================================

class FakeAPIError(Exception):
    """Mimics postgrest's APIError for "no rows" on .single()."""

    def __init__(self, message: str, code: str):
        super().__init__(f"{message} ({code})")
        self.code = code


class FakeResponse:
    def __init__(self, data: Any, count: int | None = None):
        self.data = data
        self.count = count


def _same(actual: Any, expected: Any) -> bool:
    if isinstance(expected, bool) or isinstance(actual, bool):
        return actual == expected
    if actual is None or expected is None:
        return actual is expected
    return str(actual) == str(expected)


def _ordered(actual: Any, expected: Any) -> tuple[Any, Any]:
    if isinstance(actual, (int, float)) and not isinstance(expected, str):
        return actual, expected
    return str(actual), str(expected)


def _like(pattern: str) -> re.Pattern:
    parts = [re.escape(p) for p in str(pattern).split("%")]
    return re.compile("^" + ".*".join(parts) + "$", re.IGNORECASE | re.DOTALL)


class FakeQuery:
    """
    Chainable query over one in-memory table.

    Supports the subset of the supabase-py builder the services use.
    Embedded relations in select() are ignored; store them on rows directly.
    """

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.op = "select"
        self.payload: Any = None
        self.on_conflict = "id"
        self.count_mode: str | None = None
        self.filters: list = []
        self.orderings: list[tuple[str, bool]] = []
        self.window: tuple[int, int] | None = None
        self.max_rows: int | None = None
        self.single_row = False
        self._negate = False

    # Operations
    def select(self, columns: str = "*", count: str | None = None):
        self.count_mode = count
        return self

    def insert(self, rows):
        self.op, self.payload = "insert", rows
        return self

    def update(self, values: dict):
        self.op, self.payload = "update", values
        return self

    def upsert(self, rows, on_conflict: str = "id"):
        self.op, self.payload, self.on_conflict = "upsert", rows, on_conflict
        return self

    def delete(self):
        self.op = "delete"
        return self

    # Filters
    def _add(self, predicate):
        if self._negate:
            self._negate = False
            self.filters.append(lambda row: not predicate(row))
        else:
            self.filters.append(predicate)
        return self

    @property
    def not_(self):
        self._negate = True
        return self

    def eq(self, column, value):
        return self._add(lambda row: _same(row.get(column), value))

    def neq(self, column, value):
        return self._add(lambda row: not _same(row.get(column), value))

    def in_(self, column, values):
        wanted = {str(v) for v in values}
        return self._add(lambda row: str(row.get(column)) in wanted)

    def ilike(self, column, pattern):
        regex = _like(pattern)
        return self._add(lambda row: row.get(column) is not None and bool(regex.match(str(row.get(column)))))

    def is_(self, column, value):
        if value in ("null", None):
            return self._add(lambda row: row.get(column) is None)
        return self._add(lambda row: _same(row.get(column), value))

    def _compare(self, column, value, check):
        def predicate(row):
            actual = row.get(column)
            if actual is None:
                return False
            return check(*_ordered(actual, value))
        return self._add(predicate)

    def gte(self, column, value):
        return self._compare(column, value, lambda a, b: a >= b)

    def gt(self, column, value):
        return self._compare(column, value, lambda a, b: a > b)

    def lte(self, column, value):
        return self._compare(column, value, lambda a, b: a <= b)

    def lt(self, column, value):
        return self._compare(column, value, lambda a, b: a < b)

    def or_(self, expression: str):
        clauses = []
        for clause in expression.split(","):
            column, operator, value = clause.split(".", 2)
            if operator == "ilike":
                regex = _like(value)
                clauses.append(lambda row, c=column, r=regex: row.get(c) is not None and bool(r.match(str(row.get(c)))))
            else:
                clauses.append(lambda row, c=column, v=value: _same(row.get(c), v))
        return self._add(lambda row: any(check(row) for check in clauses))

    # Shaping
    def order(self, column, desc: bool = False):
        self.orderings.append((column, desc))
        return self

    def range(self, start: int, end: int):
        self.window = (start, end)
        return self

    def limit(self, n: int):
        self.max_rows = n
        return self

    def single(self):
        self.single_row = True
        return self

    # Execution
    def _matching(self) -> list[dict]:
        return [row for row in self.db.rows(self.table_name) if all(f(row) for f in self.filters)]

    def execute(self) -> FakeResponse:
        self.db.calls.append((self.table_name, self.op))
        if self.table_name in self.db.failing_tables:
            raise RuntimeError(f"{self.table_name} unavailable")
        handler = getattr(self, f"_run_{self.op}")
        return handler()

    def _run_select(self) -> FakeResponse:
        rows = self._matching()
        for column, desc in reversed(self.orderings):
            rows.sort(key=lambda r: (r.get(column) is None, str(r.get(column)) if not isinstance(r.get(column), (int, float)) else r.get(column)), reverse=desc)
        total = len(rows)
        if self.window:
            rows = rows[self.window[0]:self.window[1] + 1]
        if self.max_rows is not None:
            rows = rows[:self.max_rows]
        rows = copy.deepcopy(rows)
        if self.single_row:
            if len(rows) != 1:
                raise FakeAPIError("JSON object requested, multiple (or no) rows returned", "PGRST116")
            return FakeResponse(rows[0], total if self.count_mode else None)
        return FakeResponse(rows, total if self.count_mode else None)

    def _run_insert(self) -> FakeResponse:
        rows = self.payload if isinstance(self.payload, list) else [self.payload]
        stored = [self.db.add(self.table_name, row) for row in rows]
        return FakeResponse(copy.deepcopy(stored))

    def _run_update(self) -> FakeResponse:
        updated = []
        for row in self._matching():
            row.update(copy.deepcopy(self.payload))
            updated.append(copy.deepcopy(row))
        return FakeResponse(updated)

    def _run_upsert(self) -> FakeResponse:
        rows = self.payload if isinstance(self.payload, list) else [self.payload]
        keys = [k.strip() for k in self.on_conflict.split(",")]
        result = []
        for row in rows:
            existing = next(
                (r for r in self.db.rows(self.table_name) if all(_same(r.get(k), row.get(k)) for k in keys)),
                None,
            )
            if existing is not None:
                existing.update(copy.deepcopy(row))
                result.append(copy.deepcopy(existing))
            else:
                result.append(copy.deepcopy(self.db.add(self.table_name, row)))
        return FakeResponse(result)

    def _run_delete(self) -> FakeResponse:
        doomed = self._matching()
        ids = {id(row) for row in doomed}
        self.db.tables[self.table_name] = [r for r in self.db.rows(self.table_name) if id(r) not in ids]
        return FakeResponse(copy.deepcopy(doomed))


class FakeRPC:
    def __init__(self, db: "FakeSupabase", name: str, params: dict):
        self.db, self.name, self.params = db, name, params

    def execute(self) -> FakeResponse:
        self.db.rpc_calls.append((self.name, self.params))
        result = self.db.rpc_results.get(self.name)
        if isinstance(result, Exception):
            raise result
        return FakeResponse(result(self.params) if callable(result) else result)


class FakeSupabase:
    """In-memory tables plus MagicMock storage and auth."""

    def __init__(self, tables: dict[str, list[dict]] | None = None):
        self.tables: dict[str, list[dict]] = {}
        self.calls: list[tuple[str, str]] = []
        self.rpc_calls: list[tuple[str, dict]] = []
        self.rpc_results: dict[str, Any] = {}
        self.failing_tables: set[str] = set()
        self.storage = MagicMock()
        self.auth = MagicMock()
        for name, rows in (tables or {}).items():
            for row in rows:
                self.add(name, row)

    def rows(self, table: str) -> list[dict]:
        return self.tables.setdefault(table, [])

    def add(self, table: str, row: dict) -> dict:
        stored = copy.deepcopy(row)
        stored.setdefault("id", str(uuid4()))
        stored.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        self.rows(table).append(stored)
        return stored

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict | None = None) -> FakeRPC:
        return FakeRPC(self, name, params or {})


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_db(monkeypatch):
    """Install an empty FakeSupabase as the shared client."""
    db = FakeSupabase()
    monkeypatch.setattr(SupabaseClient, "_instance", db)
    return db


@pytest.fixture
def admin_user():
    return StaffUser(id=uuid4(), email="admin@example.com", full_name="Ada Admin", role=UserRole.ADMIN)


@pytest.fixture
def tutor_user():
    return StaffUser(id=uuid4(), email="tutor@example.com", full_name="Tobi Tutor", role=UserRole.TUTOR)


@pytest.fixture
def student():
    return AuthUser(id=uuid4(), email="student@example.com")


@pytest.fixture
def catalog(fake_db):
    """One subject with two topics."""
    subject = fake_db.add("subjects", {
        "name": "Mathematics", "slug": "mathematics", "status": "active", "display_order": 1,
    })
    algebra = fake_db.add("topics", {
        "subject_id": subject["id"], "name": "Algebra", "slug": "algebra",
        "status": "active", "display_order": 1, "total_questions": 0,
    })
    geometry = fake_db.add("topics", {
        "subject_id": subject["id"], "name": "Geometry", "slug": "geometry",
        "status": "active", "display_order": 2, "total_questions": 0,
    })
    return {"subject": subject, "algebra": algebra, "geometry": geometry}


def make_question(subject_id: str, topic_id: str, **overrides) -> dict[str, Any]:
    question = {
        "id": str(uuid4()),
        "subject_id": subject_id,
        "topic_id": topic_id,
        "question_text": f"Question {uuid4().hex[:6]}",
        "option_a": "1",
        "option_b": "2",
        "option_c": "3",
        "option_d": "4",
        "correct_answer": "B",
        "difficulty": "Medium",
        "exam_type": "WAEC",
        "exam_year": 2020,
        "status": "published",
    }
    question.update(overrides)
    return question
