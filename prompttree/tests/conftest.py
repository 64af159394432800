"""Shared fixtures: an in-memory prompt store served through httpx."""

import asyncio
from typing import Callable

import httpx
import pytest
import pytest_asyncio
from fastapi import Body, FastAPI, HTTPException, Request

from prompttree.sdk.prompt_client import PromptStoreClient
from prompttree.utils.identifiers import node_key


class FakePromptStore:
    """Implements the REST contract of the prompt store in memory.

    Records every request so tests can assert on remote traffic, and
    fails any (method, path) registered through :meth:`fail`.
    """

    def __init__(self) -> None:
        self.prompts: dict[str, dict] = {}
        self.requests: list[tuple[str, str, dict | None]] = []
        self.failures: set[tuple[str, str]] = set()
        self.canonicalize: Callable[[str], str] = lambda name: name
        self.app = self._build_app()

    # --- Test helpers ---

    def add(
        self,
        name: str,
        version: str = "1.0",
        parent: str | None = None,
        position: tuple[float, float] | None = None,
    ) -> dict:
        metadata: dict = {"createdAt": "2024-01-01T00:00:00Z"}
        if position is not None:
            metadata["flowPosition"] = {"x": position[0], "y": position[1]}
        prompt = {
            "id": name,
            "name": name,
            "version": version,
            "content": f"# {name}",
            "staticTags": [],
            "dynamicTags": [],
            "conditions": [],
            "supportedLanguages": ["en"],
            "parentId": parent,
            "metadata": metadata,
            "config": {"model": "gpt-4", "temperature": 0.2, "maxTokens": 500},
        }
        self.prompts[node_key(name, version)] = prompt
        return prompt

    def fail(self, method: str, path: str) -> None:
        self.failures.add((method, path))

    def writes(self) -> list[tuple[str, str, dict | None]]:
        return [r for r in self.requests if r[0] in ("POST", "PATCH")]

    # --- Routes ---

    def _record(self, request: Request, body: dict | None = None) -> None:
        self.requests.append((request.method, request.url.path, body))
        if (request.method, request.url.path) in self.failures:
            raise HTTPException(status_code=500, detail="injected failure")

    def _load(self, name: str, version: str) -> dict:
        prompt = self.prompts.get(node_key(name, version))
        if prompt is None:
            raise HTTPException(status_code=404, detail=f"Prompt not found: {name}/{version}")
        return prompt

    def _build_app(self) -> FastAPI:
        app = FastAPI()

        @app.get("/prompts")
        def list_prompts(request: Request) -> list[dict]:
            self._record(request)
            return list(self.prompts.values())

        @app.post("/prompts")
        def create_prompt(request: Request, body: dict = Body(...)) -> dict:
            self._record(request, body)
            name = self.canonicalize(body["name"])
            if node_key(name, body["version"]) in self.prompts:
                raise HTTPException(status_code=409, detail=f"Prompt already exists: {name}")
            prompt = {**body, "id": name, "name": name}
            self.prompts[node_key(name, body["version"])] = prompt
            return prompt

        @app.get("/prompts/{name}/{version}/children")
        def get_children(name: str, version: str, request: Request) -> list[dict]:
            self._record(request)
            key = node_key(self._load(name, version)["name"], version)
            return [p for p in self.prompts.values() if p.get("parentId") == key]

        @app.get("/prompts/{name}/{version}")
        def get_prompt(name: str, version: str, request: Request) -> dict:
            self._record(request)
            return self._load(name, version)

        @app.patch("/prompts/{name}/{version}")
        def patch_prompt(name: str, version: str, request: Request, body: dict = Body(...)) -> dict:
            self._record(request, body)
            prompt = self._load(name, version)
            if "metadata" in body:
                prompt["metadata"] = {**prompt.get("metadata", {}), **body["metadata"]}
            if "parentId" in body:
                prompt["parentId"] = body["parentId"]
            return prompt

        return app


@pytest.fixture
def fake_store() -> FakePromptStore:
    return FakePromptStore()


@pytest.fixture
def tree_store(fake_store: FakePromptStore) -> FakePromptStore:
    """A root with one positioned and two unpositioned children."""
    fake_store.add("planner", "1.0", position=(250, 5))
    fake_store.add("critic", "1.0", parent="planner_1.0", position=(150, 300))
    fake_store.add("summary", "2.0", parent="planner_1.0")
    fake_store.add("router", "1.0", parent="planner_1.0", position=(0, 0))
    fake_store.add("unrelated", "3.1")
    return fake_store


@pytest_asyncio.fixture
async def client(fake_store: FakePromptStore):
    transport = httpx.ASGITransport(app=fake_store.app)
    async with httpx.AsyncClient(transport=transport, base_url="http://prompt-store") as http:
        yield PromptStoreClient(http)


class HeldCall:
    """Parks matching calls of one client method until :attr:`release` is set.

    The real request is only sent after release, so failures registered on
    the fake store in the meantime still apply.
    """

    def __init__(self, client: PromptStoreClient, method: str, match: Callable[..., bool]) -> None:
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self._original = getattr(client, method)
        self._match = match

    async def __call__(self, *args, **kwargs):
        if self._match(*args, **kwargs):
            self.entered.set()
            await self.release.wait()
        return await self._original(*args, **kwargs)


@pytest.fixture
def hold(client: PromptStoreClient, monkeypatch: pytest.MonkeyPatch):
    """Return a factory that holds calls of a client method, e.g. ``hold("get_children")``."""

    def factory(method: str, match: Callable[..., bool] = lambda *a, **kw: True) -> HeldCall:
        held = HeldCall(client, method, match)
        monkeypatch.setattr(client, method, held)
        return held

    return factory
