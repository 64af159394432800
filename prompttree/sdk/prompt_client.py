"""Async client of the remote prompt store.

The client is constructed explicitly and handed to the graph store, so
tests can swap the transport:

    client = PromptStoreClient(httpx.AsyncClient(base_url=url))
    store = GraphStore(client)
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from prompttree.config import ClientSettings
from prompttree.errors import PromptNotFoundError, RemoteStoreError
from prompttree.models.prompt_entity import (
    CreatePromptRequest,
    FlowPosition,
    PromptEntity,
    PromptRef,
)
from prompttree.utils.identifiers import round_coordinate

logger = logging.getLogger(__name__)


def _prompt_path(ref: PromptRef) -> str:
    return f"/prompts/{quote(ref.name, safe='')}/{quote(ref.version, safe='')}"


class PromptStoreClient:
    """Thin request layer over the prompt store REST API."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        """
        Args:
            http: Client with ``base_url`` set; owned by the caller unless
                built through :meth:`from_settings`.
        """
        self._http = http
        self._owns_http = False

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> PromptStoreClient:
        settings = settings or ClientSettings.from_env()
        http = httpx.AsyncClient(
            base_url=settings.base_url.rstrip("/"),
            headers=settings.headers,
            timeout=settings.timeout,
            transport=transport,
        )
        client = cls(http)
        client._owns_http = True
        return client

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> PromptStoreClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        json: dict | None = None,
    ) -> Any:
        try:
            response = await self._http.request(method, path, json=json)
        except httpx.RequestError as e:
            raise RemoteStoreError(
                f"Failed to reach prompt store for {method} {path}: {e}",
                method=method,
                path=path,
            ) from e

        if response.status_code == 404:
            raise PromptNotFoundError(
                f"Prompt not found: {method} {path}",
                method=method,
                path=path,
                status_code=404,
            )
        if response.is_error:
            raise RemoteStoreError(
                f"{method} {path} failed with status {response.status_code}: "
                f"{response.text[:200]}",
                method=method,
                path=path,
                status_code=response.status_code,
            )

        logger.debug("%s %s -> %s", method, path, response.status_code)
        if not response.content:
            return None
        return response.json()

    # --- Reads ---

    async def list_prompts(self) -> list[PromptEntity]:
        data = await self._request("GET", "/prompts")
        return [PromptEntity.model_validate(item) for item in data or []]

    async def get_prompt(self, ref: PromptRef) -> PromptEntity:
        data = await self._request("GET", _prompt_path(ref))
        return PromptEntity.model_validate(data)

    async def get_children(self, ref: PromptRef) -> list[PromptEntity]:
        data = await self._request("GET", f"{_prompt_path(ref)}/children")
        return [PromptEntity.model_validate(item) for item in data or []]

    # --- Writes ---

    async def create_prompt(self, request: CreatePromptRequest) -> PromptEntity:
        """Create a prompt; the returned name/version are canonical."""
        data = await self._request("POST", "/prompts", json=request.to_payload())
        return PromptEntity.model_validate(data)

    async def patch_prompt(self, ref: PromptRef, body: dict) -> None:
        await self._request("PATCH", _prompt_path(ref), json=body)

    async def update_flow_position(self, ref: PromptRef, position: FlowPosition) -> dict:
        """Persist a canvas position rounded to integers.

        Returns the body that was sent.
        """
        body = {
            "metadata": {
                "flowPosition": {
                    "x": round_coordinate(position.x),
                    "y": round_coordinate(position.y),
                }
            }
        }
        await self.patch_prompt(ref, body)
        return body

    async def clear_parent(self, ref: PromptRef) -> None:
        await self.patch_prompt(ref, {"parentId": None})

    async def set_parent(self, ref: PromptRef, parent_key: str) -> None:
        await self.patch_prompt(ref, {"parentId": parent_key})
