import os
import sys
import uuid
from contextlib import nullcontext
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, NamedTuple, Optional

import pytest

# Ensure project root is on path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


class Executed(NamedTuple):
    query: str
    params: Any
    prepare: Optional[bool]


class FakeTransaction:
    def __init__(self, conn: "FakeConnection", force_rollback: bool):
        self.conn = conn
        self.force_rollback = force_rollback

    def __enter__(self):
        self.conn.events.append("begin")
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None or self.force_rollback:
            self.conn.events.append("rollback")
        else:
            self.conn.events.append("commit")
        return False


class FakeCursor:
    def __init__(self, conn: "FakeConnection"):
        self.conn = conn
        self.rowcount = -1
        self._rows: List[Dict[str, Any]] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, query, params=None, *, prepare=None):
        self.conn.executed.append(Executed(query, params, prepare))
        result = self.conn.respond(query, params)
        if isinstance(result, BaseException):
            raise result
        if isinstance(result, int):
            self.rowcount = result
            self._rows = []
        else:
            self._rows = list(result or [])
            self.rowcount = len(self._rows)
        return self

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows


class FakeConnection:
    """
    Stand-in for psycopg.Connection.

    Responses are registered per SQL fragment with `on()`; the first
    fragment found in the executed query wins. A response is a list of
    rows, an int rowcount, an exception to raise, or a callable taking
    (query, params) and returning one of those.
    """

    def __init__(self):
        self.executed: List[Executed] = []
        self.events: List[str] = []
        self._rules: List[tuple] = []

    def on(self, fragment: str, result: Any) -> "FakeConnection":
        self._rules.append((fragment, result))
        return self

    def respond(self, query: str, params: Any):
        for fragment, result in self._rules:
            if fragment in query:
                if callable(result) and not isinstance(result, BaseException):
                    return result(query, params)
                return result
        return []

    def transaction(self, savepoint_name=None, force_rollback=False):
        return FakeTransaction(self, force_rollback)

    def cursor(self, row_factory=None):
        return FakeCursor(self)

    @property
    def queries(self) -> List[str]:
        return [e.query for e in self.executed]


@pytest.fixture
def fake_conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def connection_factory(fake_conn) -> Callable:
    return lambda: nullcontext(fake_conn)


@pytest.fixture
def segment_row() -> Callable[..., Dict[str, Any]]:
    def make(**overrides) -> Dict[str, Any]:
        now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        row = {
            "id": 1,
            "uuid": uuid.UUID("8f0c1f2e-3a4b-4c5d-9e6f-112233445566"),
            "name": "High value",
            "segment_query": "subscribers.attribs->>'ltv' > '1000'",
            "description": "top spenders",
            "created_at": now,
            "updated_at": now,
        }
        row.update(overrides)
        return row
    return make
