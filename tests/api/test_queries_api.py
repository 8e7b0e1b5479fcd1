"""POST /queries/execute: RBAC on the connection, then the gate."""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from sqlgate.api.v1.dependencies import get_query_execution_gate
from sqlgate.application.dtos.query import QueryResult
from sqlgate.domain.exceptions import PolicyViolationException, QueryExecutionException
from tests.fakes import ADMIN_HEADERS


@pytest.fixture
def gate(app: FastAPI) -> AsyncMock:
    mock = AsyncMock()
    app.dependency_overrides[get_query_execution_gate] = lambda: mock
    return mock


async def test_execute_returns_rows(client: AsyncClient, gate) -> None:
    gate.execute_query = AsyncMock(
        return_value=QueryResult(
            rows=[{"id": 1}],
            fields=["id"],
            row_count=1,
            executed_query="SELECT id FROM t LIMIT 1000",
            duration_ms=3,
        )
    )
    response = await client.post(
        "/api/v1/queries/execute",
        headers=ADMIN_HEADERS,
        json={"connection_id": "c1", "query": "SELECT id FROM t"},
    )
    assert response.status_code == 200
    assert response.json()["rows"] == [{"id": 1}]
    gate.execute_query.assert_awaited_once_with(
        "c1", "SELECT id FROM t", "admin-user", organization_id=None
    )


async def test_blocked_statement_is_403_with_rule(client: AsyncClient, gate) -> None:
    gate.execute_query = AsyncMock(
        side_effect=PolicyViolationException(
            "DDL statement (DROP) is blocked by security policy", rule="ddl_block"
        )
    )
    response = await client.post(
        "/api/v1/queries/execute",
        headers=ADMIN_HEADERS,
        json={"connection_id": "c1", "query": "DROP TABLE users"},
    )
    assert response.status_code == 403
    body = response.json()
    assert "DROP" in body["message"]
    assert body["details"]["rule"] == "ddl_block"


async def test_driver_failure_is_422_with_hint(client: AsyncClient, gate) -> None:
    gate.execute_query = AsyncMock(
        side_effect=QueryExecutionException(
            'Table "orderz" not found.', 'relation "orderz" does not exist', "c1"
        )
    )
    response = await client.post(
        "/api/v1/queries/execute",
        headers=ADMIN_HEADERS,
        json={"connection_id": "c1", "query": "SELECT * FROM orderz"},
    )
    assert response.status_code == 422
    assert response.json()["error"] == "QUERY_EXECUTION_ERROR"


async def test_user_without_execute_on_connection_is_403(client: AsyncClient, gate) -> None:
    response = await client.post(
        "/api/v1/queries/execute",
        headers={"X-User-ID": "nobody"},
        json={"connection_id": "c1", "query": "SELECT 1"},
    )
    assert response.status_code == 403
    gate.execute_query.assert_not_called()
