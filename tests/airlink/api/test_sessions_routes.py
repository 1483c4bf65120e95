import pytest


def _create(client, password=None):
    body = {"password": password} if password is not None else {}
    resp = client.post("/api/create-session", json=body)
    assert resp.status_code == 200
    return resp.json()["code"]


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "app": "AirLink"}


def test_create_session_returns_four_digit_code(client):
    code = _create(client)
    assert len(code) == 4 and code.isdigit()


def test_create_session_without_body(client):
    resp = client.post("/api/create-session")
    assert resp.status_code == 200
    assert resp.json()["code"].isdigit()


def test_codes_are_unique(client):
    codes = {_create(client) for _ in range(50)}
    assert len(codes) == 50


def test_join_open_session(client):
    code = _create(client)
    resp = client.post("/api/join-session", json={"code": code})
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "code": code}


def test_join_accepts_numeric_code(client):
    code = _create(client)
    resp = client.post("/api/join-session", json={"code": int(code)})
    assert resp.status_code == 200
    assert resp.json()["code"] == code


def test_join_with_password(client):
    code = _create(client, "abc")

    wrong = client.post("/api/join-session", json={"code": code, "password": "xyz"})
    assert wrong.status_code == 401
    assert wrong.json()["code"] == "wrong_password"
    assert wrong.json()["error"] == "Wrong password"

    missing = client.post("/api/join-session", json={"code": code})
    assert missing.status_code == 401

    ok = client.post("/api/join-session", json={"code": code, "password": "abc"})
    assert ok.status_code == 200


def test_join_unknown_session(client):
    resp = client.post("/api/join-session", json={"code": "0000"})
    assert resp.status_code == 404
    data = resp.json()
    assert data["code"] == "session_not_found"
    assert data["error"] == "Session not found"


def test_join_requires_code(client):
    resp = client.post("/api/join-session", json={})
    assert resp.status_code == 422
    assert resp.json()["code"] == "validation_error"


def test_validity(client):
    code = _create(client)
    assert client.get(f"/api/sessions/{code}/valid").json() == {"code": code, "valid": True}
    assert client.get("/api/sessions/0000/valid").json() == {"code": "0000", "valid": False}


def test_session_info(client):
    code = _create(client, "abc")

    resp = client.get(f"/api/sessions/{code}")

    assert resp.status_code == 200
    data = resp.json()
    assert data["code"] == code
    assert data["has_password"] is True
    assert data["file_count"] == 0
    assert data["max_files"] == 5
    assert data["max_file_size"] == 20 * 1024 * 1024
    assert data["members"] == 0
    assert "password" not in data


def test_session_info_unknown(client):
    resp = client.get("/api/sessions/0000")
    assert resp.status_code == 404
    assert resp.json()["details"] == {"code": "0000"}


@pytest.mark.parametrize("settings", [{"MAX_FILES_PER_SESSION": 2}], indirect=True)
def test_session_info_reflects_configured_limits(client):
    code = _create(client)
    assert client.get(f"/api/sessions/{code}").json()["max_files"] == 2


def test_invite_skipped_when_sending_disabled(client):
    code = _create(client)

    resp = client.post(f"/api/sessions/{code}/invite", json={"email": "friend@example.test"})

    assert resp.status_code == 200
    assert resp.json() == {
        "code": code,
        "email": "friend@example.test",
        "status": "skipped",
        "error": "sending disabled",
    }


def test_invite_unknown_session(client):
    resp = client.post("/api/sessions/0000/invite", json={"email": "friend@example.test"})
    assert resp.status_code == 404


def test_invite_rejects_bad_address(client):
    code = _create(client)
    resp = client.post(f"/api/sessions/{code}/invite", json={"email": "not-an-address"})
    assert resp.status_code == 422


def test_long_password_is_accepted(client):
    password = "p" * 4096
    code = _create(client, password)

    resp = client.post("/api/join-session", json={"code": code, "password": password})

    assert resp.status_code == 200
