from unittest.mock import MagicMock

import pytest

from projecthub.client import PROJECTS_KEY, STATS_KEY, USER_KEY, ApiError, ProjectHubClient
from projecthub.errors import ValidationError


@pytest.fixture()
def api(client):
    hub = ProjectHubClient(client)
    hub.register("Ana", "ana@example.com", "secret1", "secret1")
    return hub


def test_register_keeps_token_and_seeds_user_cache(api):
    assert api.is_authenticated
    assert api.is_cached(USER_KEY)
    assert api.current_user()["email"] == "ana@example.com"


def test_login_after_logout(client, api):
    api.logout()
    assert not api.is_authenticated
    assert not api.is_cached(USER_KEY)

    user = api.login("ana@example.com", "secret1")
    assert user["name"] == "Ana"
    assert api.is_authenticated


def test_reads_are_cached_until_a_mutation(client, api):
    assert api.list_projects() == []
    assert api.project_stats()["total"] == 0

    # A write from another session is not seen until the cache is invalidated.
    client.post(
        "/api/projects",
        json={"name": "Elsewhere", "status": "pendente", "startDate": "2025-01-01"},
        headers={"Authorization": f"Bearer {api.token}"},
    )
    assert api.list_projects() == []

    created = api.create_project(name="Site", status="andamento", startDate="2025-02-01")
    assert not api.is_cached(PROJECTS_KEY)
    assert not api.is_cached(STATS_KEY)

    assert [p["name"] for p in api.list_projects()] == ["Elsewhere", "Site"]
    assert api.project_stats() == {"total": 2, "pendente": 1, "andamento": 1, "concluido": 0}

    api.update_project(created["id"], status="concluido")
    assert api.project_stats()["concluido"] == 1

    api.delete_project(created["id"])
    assert [p["name"] for p in api.list_projects()] == ["Elsewhere"]
    assert api.project_stats()["total"] == 1


def test_get_project_is_not_cached(api):
    created = api.create_project(name="Site", status="pendente", startDate="2025-02-01")
    assert api.get_project(created["id"])["name"] == "Site"


def test_client_validation_runs_before_any_request():
    http = MagicMock()
    hub = ProjectHubClient(http, token="t")

    with pytest.raises(ValidationError) as exc_info:
        hub.register("Ana", "ana@example.com", "secret1", "secret2")
    assert exc_info.value.message == "Passwords do not match"

    with pytest.raises(ValidationError) as exc_info:
        hub.create_project(name="Site", status="archived", startDate="2025-01-01")
    assert exc_info.value.message.startswith("Status must be one of")

    http.request.assert_not_called()


def test_server_errors_raise_api_error(api):
    with pytest.raises(ApiError) as exc_info:
        api.delete_project("00000000-0000-0000-0000-000000000000")
    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Project not found"
    assert api.is_authenticated


def test_rejected_token_clears_session(api):
    api.list_projects()
    api.token = "forged"

    with pytest.raises(ApiError) as exc_info:
        api.project_stats()
    assert exc_info.value.status_code == 403
    assert not api.is_authenticated
    assert not api.is_cached(PROJECTS_KEY)


def test_wrong_login_does_not_start_session(client):
    hub = ProjectHubClient(client)
    with pytest.raises(ApiError) as exc_info:
        hub.login("nobody@example.com", "secret1")
    assert exc_info.value.status_code == 401
    assert not hub.is_authenticated


def test_client_rejects_project_without_status():
    http = MagicMock()
    hub = ProjectHubClient(http, token="t")

    with pytest.raises(ValidationError) as exc_info:
        hub.create_project(name="Site", startDate="2025-01-01")
    assert exc_info.value.message == "Status is required"
    http.request.assert_not_called()
