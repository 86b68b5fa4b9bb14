from __future__ import annotations

from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

from app.main import app
from app.models.employee import EmployeeListItem


def _record(id: str, manager_id: str | None = None, sort_order: int = 0, **fields: Any) -> EmployeeListItem:
    data: dict[str, Any] = {
        "id": id,
        "first_name": id,
        "last_name": "Tester",
        "designation": "Engineer",
        "manager_id": manager_id,
        "sort_order": sort_order,
    }
    data.update(fields)
    return EmployeeListItem(**data)


@pytest.fixture
def make_record():
    return _record


@pytest.fixture
def sample_records() -> list[EmployeeListItem]:
    return [
        _record("A", None, 0, first_name="Alice", last_name="Archer", designation="CEO", department="Executive"),
        _record("B", "A", 0, first_name="Bob", last_name="Baker", designation="VP", department="Operations"),
        _record("C", "A", 1, first_name="Carol", last_name="Clark", designation="VP", department="Sales"),
        _record("D", "B", 0, first_name="Dave", last_name="Dunn", designation="Eng"),
    ]


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
