"""Tests for the remote prompt store client."""

import httpx
import pytest

from prompttree.config import ClientSettings
from prompttree.errors import PromptNotFoundError, RemoteStoreError
from prompttree.models.prompt_entity import CreatePromptRequest, FlowPosition, PromptRef
from prompttree.sdk.prompt_client import PromptStoreClient

PLANNER = PromptRef(name="planner", version="1.0")


class TestReads:
    """GET endpoints."""

    @pytest.mark.asyncio
    async def test_get_prompt(self, tree_store, client):
        entity = await client.get_prompt(PLANNER)

        assert entity.key == "planner_1.0"
        assert entity.metadata.flow_position == FlowPosition(x=250, y=5)

    @pytest.mark.asyncio
    async def test_get_children(self, tree_store, client):
        children = await client.get_children(PLANNER)

        assert [c.key for c in children] == ["critic_1.0", "summary_2.0", "router_1.0"]

    @pytest.mark.asyncio
    async def test_list_prompts(self, tree_store, client):
        prompts = await client.list_prompts()
        assert len(prompts) == 5

    @pytest.mark.asyncio
    async def test_missing_prompt_raises_not_found(self, fake_store, client):
        with pytest.raises(PromptNotFoundError) as exc_info:
            await client.get_prompt(PromptRef(name="ghost", version="1"))
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_server_error_raises_remote_store_error(self, tree_store, client):
        tree_store.fail("GET", "/prompts/planner/1.0/children")

        with pytest.raises(RemoteStoreError) as exc_info:
            await client.get_children(PLANNER)
        assert exc_info.value.status_code == 500
        assert exc_info.value.method == "GET"

    @pytest.mark.asyncio
    async def test_path_segments_are_quoted(self, fake_store, client):
        fake_store.add("what now?", "1.0")

        entity = await client.get_prompt(PromptRef(name="what now?", version="1.0"))
        assert entity.name == "what now?"


class TestWrites:
    """POST and PATCH endpoints."""

    @pytest.mark.asyncio
    async def test_update_flow_position_rounds(self, tree_store, client):
        body = await client.update_flow_position(PLANNER, FlowPosition(x=10.5, y=-3.4))

        assert body == {"metadata": {"flowPosition": {"x": 11, "y": -3}}}
        assert tree_store.writes() == [("PATCH", "/prompts/planner/1.0", body)]
        assert tree_store.prompts["planner_1.0"]["metadata"]["flowPosition"] == {"x": 11, "y": -3}

    @pytest.mark.asyncio
    async def test_clear_parent(self, tree_store, client):
        await client.clear_parent(PromptRef(name="critic", version="1.0"))

        assert tree_store.writes() == [("PATCH", "/prompts/critic/1.0", {"parentId": None})]
        assert tree_store.prompts["critic_1.0"]["parentId"] is None

    @pytest.mark.asyncio
    async def test_set_parent(self, tree_store, client):
        await client.set_parent(PromptRef(name="unrelated", version="3.1"), "planner_1.0")
        assert tree_store.prompts["unrelated_3.1"]["parentId"] == "planner_1.0"

    @pytest.mark.asyncio
    async def test_create_returns_canonical_entity(self, fake_store, client):
        fake_store.canonicalize = lambda name: name.upper()
        request = CreatePromptRequest(name="draft", version="1.0", content="hi")

        created = await client.create_prompt(request)

        assert created.key == "DRAFT_1.0"


class TestTransport:
    """Connection-level behaviour."""

    @pytest.mark.asyncio
    async def test_connection_error_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = PromptStoreClient.from_settings(
            ClientSettings(base_url="http://prompt-store"),
            transport=httpx.MockTransport(handler),
        )
        async with client:
            with pytest.raises(RemoteStoreError) as exc_info:
                await client.get_prompt(PLANNER)
        assert exc_info.value.status_code is None
        assert exc_info.value.path == "/prompts/planner/1.0"

    @pytest.mark.asyncio
    async def test_from_settings_sends_json_headers(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200)

        client = PromptStoreClient.from_settings(
            ClientSettings(base_url="http://prompt-store/api/"),
            transport=httpx.MockTransport(handler),
        )
        async with client:
            await client.clear_parent(PLANNER)

        assert str(seen[0].url) == "http://prompt-store/api/prompts/planner/1.0"
        assert seen[0].headers["content-type"] == "application/json"
