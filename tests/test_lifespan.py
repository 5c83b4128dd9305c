import asyncpg
from fastapi.testclient import TestClient

from core.db import Database
from main import create_app


class _Pool:
    def __init__(self) -> None:
        self.closed = False
        self.queries: list[str] = []

    async def fetch(self, sql, *args):
        self.queries.append(sql)
        return []

    async def close(self) -> None:
        self.closed = True


def test_injected_database_is_connected_and_closed(monkeypatch):
    pool = _Pool()
    opened = []

    async def create_pool(**kwargs):
        opened.append(kwargs)
        return pool

    monkeypatch.setattr(asyncpg, "create_pool", create_pool)
    monkeypatch.setenv("DB_AUTO_MIGRATE", "false")

    db = Database("postgresql://u:p@db/market", min_size=1, max_size=2)
    with TestClient(create_app(db=db)) as client:
        assert db.is_connected
        resp = client.get("/categories")
        assert resp.status_code == 200
        assert resp.json() == {"data": [], "count": 0}

    assert opened == [{"dsn": "postgresql://u:p@db/market", "min_size": 1, "max_size": 2, "command_timeout": 30}]
    assert len(pool.queries) == 1
    assert pool.closed
    assert not db.is_connected


def test_in_memory_store_skips_pool_management(store):
    with TestClient(create_app(db=store)) as client:
        assert client.get("/categories").json()["count"] == 3
