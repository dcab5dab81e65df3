"""
Unit tests for the admin cookie guard.
"""

from __future__ import annotations

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from trailer_booking.routes._booking_helpers import AdminCookieGuard


def _client(secret: str) -> TestClient:
    guard = AdminCookieGuard("jla_admin", secret)
    app = FastAPI()

    @app.get("/admin-only", dependencies=[Depends(guard)])
    def admin_only() -> dict[str, bool]:
        return {"ok": True}

    return TestClient(app)


@pytest.mark.unit
def test_matching_cookie_is_admitted() -> None:
    client = _client("s3cret")
    client.cookies.set("jla_admin", "s3cret")

    assert client.get("/admin-only").status_code == 200


@pytest.mark.unit
def test_missing_cookie_is_rejected() -> None:
    assert _client("s3cret").get("/admin-only").status_code == 401


@pytest.mark.unit
def test_wrong_cookie_is_rejected() -> None:
    client = _client("s3cret")
    client.cookies.set("jla_admin", "s3cret-but-longer")

    assert client.get("/admin-only").status_code == 401


@pytest.mark.unit
def test_empty_secret_admits_nobody() -> None:
    client = _client("")
    client.cookies.set("jla_admin", "")

    assert client.get("/admin-only").status_code == 401
