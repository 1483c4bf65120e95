from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from airlink.core.exceptions import (
    FileQuotaExceeded,
    SessionNotFound,
    WrongPassword,
    register_exception_handlers,
)


def create_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    def _boom() -> None:
        raise RuntimeError("kaboom")

    @app.get("/missing")
    def _missing() -> None:
        raise SessionNotFound("4821")

    @app.get("/locked")
    def _locked() -> None:
        raise WrongPassword("4821")

    @app.get("/full")
    def _full() -> None:
        raise FileQuotaExceeded(5, 5)

    @app.get("/http")
    def _http() -> None:
        raise HTTPException(status_code=404, detail="not found")

    @app.get("/needs-int")
    def _needs_int(x: int) -> dict[str, int]:
        return {"x": x}

    return app


def test_session_not_found_maps_to_404():
    client = TestClient(create_app())
    resp = client.get("/missing")
    assert resp.status_code == 404
    data = resp.json()
    assert data["error"] == "Session not found"
    assert data["code"] == "session_not_found"
    assert data["type"] == "SessionNotFound"
    assert data["details"] == {"code": "4821"}


def test_wrong_password_maps_to_401():
    client = TestClient(create_app())
    resp = client.get("/locked")
    assert resp.status_code == 401
    data = resp.json()
    assert data["error"] == "Wrong password"
    assert data["code"] == "wrong_password"


def test_quota_error_carries_limits():
    client = TestClient(create_app())
    resp = client.get("/full")
    assert resp.status_code == 409
    assert resp.json()["details"] == {"fileCount": 5, "maxFiles": 5}


def test_http_exception_is_normalized():
    client = TestClient(create_app())
    resp = client.get("/http")
    assert resp.status_code == 404
    data = resp.json()
    assert data["error"] == "not found"
    assert data["code"] == "http_exception"
    assert data["type"] == "HTTPException"


def test_validation_errors_are_normalized():
    client = TestClient(create_app())
    resp = client.get("/needs-int", params={"x": "many"})
    assert resp.status_code == 422
    data = resp.json()
    assert data["error"] == "Validation error"
    assert data["code"] == "validation_error"
    assert isinstance(data["details"], list)


def test_unhandled_exceptions_do_not_leak_message():
    client = TestClient(create_app(), raise_server_exceptions=False)
    resp = client.get("/boom")
    assert resp.status_code == 500
    data = resp.json()
    assert data["error"] == "Internal server error"
    assert data["code"] == "internal_error"
    assert "kaboom" not in resp.text
