"""Client for the dashboard endpoints of the Permem backend (auth, projects, graph)."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from permem.config import get_settings
from permem.exceptions import PermemError
from permem.models import (
    Account,
    AuthResponse,
    GraphData,
    Project,
    ProjectMemory,
    ProjectStats,
)

logger = logging.getLogger(__name__)


class DashboardClient:
    """
    Session-scoped client for the dashboard backend.

    Unlike Permem, this client authenticates with a bearer token obtained from
    signup() or login() instead of a project API key.

    Usage:
        dash = DashboardClient(url="http://localhost:3333")
        auth = dash.login("ada@example.com", "secret")
        stats = dash.get_project_stats(auth.project.id)
    """

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.url = url or get_settings().client_config().url
        self.token = token
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    # ============ Auth ============

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def signup(self, name: str, email: str, password: str) -> AuthResponse:
        """Create an account and keep its session token."""
        data = self._request(
            "POST", "/auth/signup", body={"name": name, "email": email, "password": password}
        )
        auth = AuthResponse.model_validate(data)
        self.token = auth.token
        return auth

    def login(self, email: str, password: str) -> AuthResponse:
        """Sign in and keep the session token."""
        data = self._request("POST", "/auth/login", body={"email": email, "password": password})
        auth = AuthResponse.model_validate(data)
        self.token = auth.token
        return auth

    def me(self) -> Account:
        return Account.model_validate(self._request("GET", "/auth/me"))

    def logout(self) -> None:
        """Forget the session token. The server is not contacted."""
        self.token = None

    # ============ Projects ============

    def get_projects(self) -> List[Project]:
        data = self._request("GET", "/projects")
        return [Project.model_validate(p) for p in data.get("projects", [])]

    def update_project(self, project_id: str, name: Optional[str] = None) -> Project:
        body = {"name": name} if name is not None else {}
        data = self._request("PATCH", f"/projects/{project_id}", body=body)
        return Project.model_validate(data["project"])

    def get_project_stats(self, project_id: str) -> ProjectStats:
        return ProjectStats.model_validate(self._request("GET", f"/projects/{project_id}/stats"))

    def get_project_memories(self, project_id: str, limit: int = 50) -> List[ProjectMemory]:
        data = self._request("GET", f"/projects/{project_id}/memories", params={"limit": limit})
        return [ProjectMemory.model_validate(m) for m in data.get("memories", [])]

    def regenerate_api_key(self, project_id: str) -> str:
        """Rotate the project's API key and return the new one."""
        data = self._request("POST", f"/projects/{project_id}/regenerate-key")
        return data["apiKey"]

    # ============ Graph ============

    def get_graph(self, project_id: str, user_id: Optional[str] = None) -> GraphData:
        """Get the memory graph of a project, optionally for a single user."""
        params = {"projectId": project_id}
        if user_id:
            params["userId"] = user_id
        return GraphData.model_validate(self._request("GET", "/v1/graph", params=params))

    def _request(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        url = f"{self.url}{path}"
        logger.debug("%s %s", method, url)
        response = self._http.request(method, url, headers=headers, params=params, json=body)
        if not response.is_success:
            raise PermemError.from_response(response)
        return response.json()
