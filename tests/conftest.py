"""Shared pytest fixtures: env, in-memory Supabase stand-in, API client."""
import os
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")


class FakeResult:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    """Covers the subset of the postgrest builder the routers use."""

    def __init__(self, db, table):
        self._db = db
        self._table = table
        self._op = "select"
        self._columns = "*"
        self._count = None
        self._payload = None
        self._filters = []
        self._order = []
        self._range = None

    def select(self, columns="*", count=None):
        self._op, self._columns, self._count = "select", columns, count
        return self

    def insert(self, payload):
        self._op, self._payload = "insert", payload
        return self

    def update(self, payload):
        self._op, self._payload = "update", payload
        return self

    def delete(self):
        self._op = "delete"
        return self

    def eq(self, column, value):
        self._filters.append(lambda r: r.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda r: r.get(column) != value)
        return self

    def gte(self, column, value):
        self._filters.append(lambda r: r.get(column) is not None and r[column] >= value)
        return self

    def lte(self, column, value):
        self._filters.append(lambda r: r.get(column) is not None and r[column] <= value)
        return self

    def in_(self, column, values):
        values = list(values)
        self._filters.append(lambda r: r.get(column) in values)
        return self

    def order(self, column, desc=False):
        self._order.append((column, desc))
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def _project(self, row):
        if self._columns.strip() == "*":
            return dict(row)
        cols = [c.strip() for c in self._columns.split(",")]
        return {c: row.get(c) for c in cols}

    def execute(self):
        rows = self._db.tables.setdefault(self._table, [])

        if self._op == "insert" and self._table in self._db.failing_inserts:
            raise RuntimeError(f"insert into {self._table} failed")

        if self._op == "insert":
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            created = []
            for item in payload:
                row = {
                    "id": self._db.next_id(self._table),
                    "created_at": datetime.now(timezone.utc).isoformat(),
                    **item,
                }
                rows.append(row)
                created.append(dict(row))
            return FakeResult(created)

        matched = [r for r in rows if all(f(r) for f in self._filters)]

        if self._op == "update":
            for r in matched:
                r.update(self._payload)
            return FakeResult([dict(r) for r in matched])

        if self._op == "delete":
            self._db.tables[self._table] = [r for r in rows if r not in matched]
            return FakeResult([dict(r) for r in matched])

        for column, desc in reversed(self._order):
            matched.sort(
                key=lambda r: (r.get(column) is not None, r.get(column) if r.get(column) is not None else ""),
                reverse=desc,
            )
        count = len(matched) if self._count else None
        if self._range:
            start, end = self._range
            matched = matched[start:end + 1]
        return FakeResult([self._project(r) for r in matched], count)


class FakeAuth:
    def __init__(self, tokens):
        self._tokens = tokens

    def get_user(self, token):
        if token not in self._tokens:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=self._tokens[token]))


class FakeSupabase:
    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.tokens: dict[str, str] = {"token-alice": "user-alice", "token-bob": "user-bob"}
        self.auth = FakeAuth(self.tokens)
        self._ids: dict[str, int] = {}
        self.failing_inserts: set[str] = set()

    def next_id(self, table):
        self._ids[table] = self._ids.get(table, 0) + 1
        return self._ids[table]

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def fake_db(monkeypatch):
    import api.accounts
    import api.analytics
    import api.trades
    import api.user_settings

    db = FakeSupabase()
    for module in (api.accounts, api.analytics, api.trades, api.user_settings):
        monkeypatch.setattr(module, "create_client", lambda *args, **kwargs: db)
    return db


@pytest.fixture
def client(fake_db):
    from fastapi.testclient import TestClient

    from main import app

    return TestClient(app)


@pytest.fixture
def alice():
    return {"Authorization": "Bearer token-alice"}


@pytest.fixture
def bob():
    return {"Authorization": "Bearer token-bob"}


@pytest.fixture
def account_id(client, alice):
    resp = client.post(
        "/api/accounts",
        json={"name": "FTMO 100k", "type": "FTMO Challenge", "balance": 100000, "currency": "usd"},
        headers=alice,
    )
    assert resp.status_code == 201
    return resp.json()["id"]


@pytest.fixture
def sample_trades():
    return [
        {"symbol": "EURUSD", "profit": 100.0, "pips": 10.0, "is_win": True, "rrr": 2.0,
         "trade_date": "2026-09-01", "trade_time": "09:00"},
        {"symbol": "EURUSD", "profit": -50.0, "pips": -5.0, "is_win": False, "rrr": 1.0,
         "trade_date": "2026-09-01", "trade_time": "14:00"},
        {"symbol": "USDJPY", "profit": -80.0, "pips": -8.0, "is_win": False, "rrr": None,
         "trade_date": "2026-09-15", "trade_time": "10:30"},
        {"symbol": "GBPUSD", "profit": 200.0, "pips": 20.0, "is_win": True, "rrr": 3.0,
         "trade_date": "2026-10-02", "trade_time": "08:15"},
        {"symbol": "EURUSD", "profit": 0.0, "pips": 0.0, "is_win": False, "rrr": None,
         "trade_date": "2026-10-10", "trade_time": "11:00"},
    ]
