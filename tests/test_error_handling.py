from http import HTTPStatus
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from projecthub import crud
from projecthub.errors import InternalError
from projecthub.main import app


def test_store_failure_returns_clean_500(client, auth_headers, monkeypatch):
    """A store failure surfaces as a generic 500 without internal detail."""
    headers = auth_headers()

    mock = MagicMock(side_effect=InternalError())
    monkeypatch.setattr(crud, "create_project", mock)

    response = client.post(
        "/api/projects",
        json={"name": "Site", "status": "pendente", "startDate": "2025-01-01"},
        headers=headers,
    )

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.json() == {"message": "Internal server error"}
    assert mock.called


def test_commit_failure_is_rolled_back_and_wrapped(db_session, monkeypatch):
    def _boom():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    rollback = MagicMock(wraps=db_session.rollback)
    monkeypatch.setattr(db_session, "commit", _boom)
    monkeypatch.setattr(db_session, "rollback", rollback)

    try:
        crud.create_user(db_session, name="Ana", email="ana@example.com", password_hash="x")
    except InternalError as exc:
        assert "disk" not in exc.message
    else:
        raise AssertionError("expected InternalError")
    assert rollback.called


def test_unexpected_exception_returns_500(client, auth_headers, monkeypatch):
    headers = auth_headers()
    monkeypatch.setattr(crud, "get_projects", MagicMock(side_effect=RuntimeError("boom")))

    with TestClient(app, raise_server_exceptions=False) as c:
        response = c.get("/api/projects", headers=headers)

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.json() == {"message": "Internal server error"}


def test_unknown_route_uses_message_body(client):
    response = client.get("/api/nope")
    assert response.status_code == HTTPStatus.NOT_FOUND
    assert "message" in response.json()


def test_malformed_json_is_bad_request(client):
    response = client.post(
        "/api/auth/login",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.json()["message"]


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == HTTPStatus.OK
    assert response.json() == {"status": "ok"}
