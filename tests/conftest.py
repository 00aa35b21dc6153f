"""Shared fixtures: an in-process fake Permem server."""

from typing import Any, Dict, List

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.testclient import TestClient

import permem.default
from permem.config import get_settings


TEST_URL = "http://testserver"


class FakePermemServer:
    """Records every request and answers with canned wire-contract bodies."""

    def __init__(self) -> None:
        self.requests: List[Dict[str, Any]] = []
        self.overrides: Dict[str, tuple] = {}
        self.app = self._build_app()

    def fail(self, path: str, status_code: int, body: Any) -> None:
        """Make the next requests to path answer with the given status and body."""
        self.overrides[path] = (status_code, body)

    @property
    def last(self) -> Dict[str, Any]:
        return self.requests[-1]

    def _build_app(self) -> FastAPI:
        app = FastAPI()

        @app.middleware("http")
        async def record(request: Request, call_next):
            raw = await request.body()
            self.requests.append({
                "method": request.method,
                "path": request.url.path,
                "url": str(request.url),
                "query": dict(request.query_params),
                "headers": dict(request.headers),
                "body": await request.json() if raw else None,
            })
            override = self.overrides.get(request.url.path)
            if override is not None:
                status_code, body = override
                if isinstance(body, str):
                    return PlainTextResponse(body, status_code=status_code)
                return JSONResponse(status_code=status_code, content=body)
            return await call_next(request)

        @app.post("/v1/memories")
        async def store() -> Dict[str, Any]:
            return {
                "stored": True,
                "stored_count": 1,
                "duplicates": 0,
                "results": [
                    {
                        "action": "NEW",
                        "memory": {"id": "mem-1", "summary": "User's name is Ashish", "type": "core"},
                    },
                ],
            }

        @app.get("/v1/memories/search")
        async def search() -> Dict[str, Any]:
            return {
                "memories": [
                    {
                        "id": "mem-1",
                        "summary": "User's name is Ashish",
                        "type": "core",
                        "importance": "high",
                        "importanceScore": 0.9,
                        "similarity": 0.85,
                        "createdAt": "2025-01-15T10:30:00Z",
                        "topics": ["identity"],
                    },
                ],
            }

        @app.post("/v1/auto/inbound")
        async def inbound() -> Dict[str, Any]:
            return {
                "memories": [{"id": "mem-1", "summary": "Test memory", "type": "fact", "similarity": 0.8}],
                "injectionText": "<relevant_memories>\n- Test memory\n</relevant_memories>",
                "shouldInject": True,
            }

        @app.post("/v1/auto/outbound")
        async def outbound() -> Dict[str, Any]:
            return {
                "shouldExtract": True,
                "extracted": [{"id": "mem-2", "summary": "New memory", "type": "fact", "action": "NEW"}],
                "skippedDuplicates": [],
            }

        @app.get("/health")
        async def health() -> Dict[str, Any]:
            return {"status": "ok"}

        # Dashboard endpoints

        @app.post("/auth/signup")
        @app.post("/auth/login")
        async def auth() -> Dict[str, Any]:
            return {"user": USER, "project": PROJECT, "token": "session-token"}

        @app.get("/auth/me")
        async def me() -> Dict[str, Any]:
            return {"user": USER, "project": PROJECT}

        @app.get("/projects")
        async def projects() -> Dict[str, Any]:
            return {"projects": [PROJECT]}

        @app.patch("/projects/{project_id}")
        async def update_project(project_id: str) -> Dict[str, Any]:
            return {"project": {**PROJECT, "id": project_id, **self.last["body"]}}

        @app.get("/projects/{project_id}/stats")
        async def stats(project_id: str) -> Dict[str, Any]:
            return {"memoryCount": 42, "maxMemories": 1000}

        @app.get("/projects/{project_id}/memories")
        async def project_memories(project_id: str) -> Dict[str, Any]:
            return {
                "memories": [
                    {
                        "id": "mem-1",
                        "userId": "user-123",
                        "summary": "Likes blue",
                        "type": "preference",
                        "importance": "medium",
                        "importanceScore": 0.5,
                        "createdAt": "2025-01-15T10:30:00Z",
                    },
                ],
            }

        @app.post("/projects/{project_id}/regenerate-key")
        async def regenerate(project_id: str) -> Dict[str, Any]:
            return {"apiKey": "pm_new_key"}

        @app.get("/v1/graph")
        async def graph() -> Dict[str, Any]:
            return {
                "nodes": [
                    {"id": "a", "label": "Likes blue", "type": "preference", "importance": 0.5, "userId": "u"},
                    {"id": "b", "label": "Paints", "type": "fact", "importance": 0.8, "userId": "u"},
                ],
                "edges": [{"source": "a", "target": "b", "type": "related", "strength": 0.7}],
            }

        return app


USER = {"id": "user-1", "name": "Ada", "email": "ada@example.com"}
PROJECT = {"id": "proj-1", "name": "Demo", "apiKey": "pm_test_key", "maxMemories": 1000}


@pytest.fixture
def server() -> FakePermemServer:
    """A fresh fake Permem server."""
    return FakePermemServer()


@pytest.fixture
def http_client(server):
    """An httpx.Client routed to the fake server."""
    with TestClient(server.app) as c:
        yield c


@pytest.fixture(autouse=True)
def reset_default_client(monkeypatch):
    """Isolate the process-wide client and settings between tests."""
    monkeypatch.setattr(permem.default, "_client", None)
    for name in (
        "PERMEM_URL",
        "PERMEM_API_KEY",
        "PERMEM_MAX_CONTEXT_LENGTH",
        "PERMEM_EXTRACT_THRESHOLD",
        "PERMEM_USER_ID",
        "PERMEM_CHAT_MODEL",
        "PERMEM_EXTRACT_MESSAGE_THRESHOLD",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
