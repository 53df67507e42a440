"""
Client for the ProjectHub HTTP API.

Mirrors what the browser does:
- validates payloads with the server's own schemas before sending
- keeps the bearer token after register/login and attaches it to protected calls
- caches the project list, stats and current user until a mutation invalidates them
- drops token and cache when the server rejects the credential (401/403)
"""

import logging
from typing import Any, Dict, List, Optional, Type

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from . import schemas
from .errors import ValidationError

logger = logging.getLogger(__name__)

PROJECTS_KEY = "/api/projects"
STATS_KEY = "/api/projects/stats"
USER_KEY = "/api/auth/user"


class ApiError(Exception):
    """Non-2xx response from the API, carrying the server's message."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class ProjectHubClient:
    def __init__(self, http: httpx.Client, token: Optional[str] = None):
        self.http = http
        self.token = token
        self._cache: Dict[str, Any] = {}

    # ----- cache -----

    def invalidate(self, *keys: str) -> None:
        for key in keys:
            self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()

    def is_cached(self, key: str) -> bool:
        return key in self._cache

    def _cached_get(self, key: str) -> Any:
        if key not in self._cache:
            self._cache[key] = self._request("GET", key)
        return self._cache[key]

    # ----- transport -----

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def _headers(self, protected: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if protected and self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        protected: bool = True,
    ) -> Any:
        response = self.http.request(
            method, path, json=json, headers=self._headers(protected)
        )
        if response.status_code in (401, 403) and protected:
            logger.info("Credential rejected on %s; clearing session", path)
            self.logout()
        if response.is_error:
            raise ApiError(response.status_code, _error_message(response))
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _validate(schema: Type[BaseModel], payload: Dict[str, Any]) -> BaseModel:
        try:
            return schema.model_validate(payload)
        except SchemaValidationError as exc:
            raise ValidationError(schemas.first_error_message(exc.errors())) from None

    # ----- auth -----

    def _start_session(self, body: Dict[str, Any]) -> Dict[str, Any]:
        self.clear()
        self.token = body["token"]
        self._cache[USER_KEY] = body["user"]
        return body["user"]

    def register(self, name: str, email: str, password: str, confirm_password: str) -> Dict[str, Any]:
        payload = {
            "name": name,
            "email": email,
            "password": password,
            "confirmPassword": confirm_password,
        }
        self._validate(schemas.RegisterRequest, payload)
        body = self._request("POST", "/api/auth/register", json=payload, protected=False)
        return self._start_session(body)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        payload = {"email": email, "password": password}
        self._validate(schemas.LoginRequest, payload)
        body = self._request("POST", "/api/auth/login", json=payload, protected=False)
        return self._start_session(body)

    def logout(self) -> None:
        self.token = None
        self.clear()

    def current_user(self) -> Dict[str, Any]:
        return self._cached_get(USER_KEY)

    # ----- projects -----

    def list_projects(self) -> List[Dict[str, Any]]:
        return self._cached_get(PROJECTS_KEY)

    def project_stats(self) -> Dict[str, int]:
        return self._cached_get(STATS_KEY)

    def get_project(self, project_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/projects/{project_id}")

    def create_project(self, **fields: Any) -> Dict[str, Any]:
        self._validate(schemas.ProjectCreate, fields)
        project = self._request("POST", "/api/projects", json=fields)
        self.invalidate(PROJECTS_KEY, STATS_KEY)
        return project

    def update_project(self, project_id: str, **fields: Any) -> Dict[str, Any]:
        self._validate(schemas.ProjectUpdate, fields)
        project = self._request("PUT", f"/api/projects/{project_id}", json=fields)
        self.invalidate(PROJECTS_KEY, STATS_KEY)
        return project

    def delete_project(self, project_id: str) -> None:
        self._request("DELETE", f"/api/projects/{project_id}")
        self.invalidate(PROJECTS_KEY, STATS_KEY)


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("message") or response.reason_phrase
    except ValueError:
        return response.text or response.reason_phrase
