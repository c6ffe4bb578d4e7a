"""HTTP tests for /meta."""

from __future__ import annotations

import asyncpg
from fastapi.testclient import TestClient

from vidbrief import __version__


class PingPool:
    def __init__(self, error: BaseException | None = None) -> None:
        self.error = error

    async def fetchval(self, sql: str) -> int:
        if self.error is not None:
            raise self.error
        return 1


def test_health(client: TestClient) -> None:
    response = client.get("/meta/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-Id"]


def test_request_id_is_echoed(client: TestClient) -> None:
    response = client.get("/meta/health", headers={"X-Request-Id": "req-42"})
    assert response.headers["X-Request-Id"] == "req-42"


def test_ready_with_database(client: TestClient) -> None:
    client.app.state.db_pool = PingPool()
    assert client.get("/meta/ready").json() == {"status": "ok"}


def test_ready_without_pool(client: TestClient) -> None:
    client.app.state.db_pool = None
    response = client.get("/meta/ready")
    assert response.status_code == 503
    assert response.json()["error"]["code"] == "not_ready"


def test_ready_database_unreachable(client: TestClient) -> None:
    client.app.state.db_pool = PingPool(asyncpg.InterfaceError("pool is closed"))
    assert client.get("/meta/ready").status_code == 503


def test_status(client: TestClient) -> None:
    body = client.get("/meta/status").json()
    assert body["status"] == "ok"
    assert body["version"] == __version__
    assert body["uptimeSeconds"] >= 0
    assert body["database"] == "connected"
    assert body["summaryProvider"] == "fallback"


def test_api_without_database_is_not_ready(client: TestClient, auth_headers: dict) -> None:
    client.app.state.db_pool = None
    response = client.get("/api/summary", headers=auth_headers)
    assert response.status_code == 503
