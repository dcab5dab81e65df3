"""
Unit tests for middleware components.
"""

from __future__ import annotations

import pytest
import structlog
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from trailer_booking.middleware import RequestIDMiddleware


@pytest.fixture
def app_with_middleware() -> FastAPI:
    """Create FastAPI app with RequestIDMiddleware for testing."""
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/test")
    async def test_endpoint(request: Request) -> dict[str, str]:
        bound = structlog.contextvars.get_contextvars()
        return {
            "request_id": request.state.request_id,
            "bound_request_id": bound.get("request_id", ""),
        }

    return app


@pytest.fixture
def client(app_with_middleware: FastAPI) -> TestClient:
    return TestClient(app_with_middleware)


@pytest.mark.unit
def test_request_id_header_matches_state(client: TestClient) -> None:
    response = client.get("/test")

    assert response.status_code == 200
    assert len(response.headers["X-Request-ID"]) == 36  # UUID length
    assert response.json()["request_id"] == response.headers["X-Request-ID"]


@pytest.mark.unit
def test_request_id_is_bound_for_logging(client: TestClient) -> None:
    response = client.get("/test")

    assert response.json()["bound_request_id"] == response.headers["X-Request-ID"]


@pytest.mark.unit
def test_incoming_request_id_is_reused(client: TestClient) -> None:
    response = client.get("/test", headers={"X-Request-ID": "upstream-trace-1"})

    assert response.headers["X-Request-ID"] == "upstream-trace-1"
    assert response.json()["request_id"] == "upstream-trace-1"


@pytest.mark.unit
def test_each_request_gets_new_id(client: TestClient) -> None:
    first = client.get("/test").headers["X-Request-ID"]
    second = client.get("/test").headers["X-Request-ID"]

    assert first != second
