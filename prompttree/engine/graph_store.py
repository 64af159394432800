"""In-memory node/edge graph of the prompt structure editor.

The store is the only thing that mutates the graph. The canvas reports
gestures (drag frames, drag end, clicks) and receives a fresh
:class:`FlowSnapshot` through its sinks after every change. Remote calls
run as tasks on the same event loop; their results are folded back when
they resolve, and the graph stays interactive in the meantime.

    store = GraphStore(client, sinks=[canvas])
    await store.initialize(PromptRef(name="planner", version="1.0"))
    store.apply_position_change("planner_1.0", FlowPosition(x=10, y=20), is_final=True)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable

from prompttree.adapters.position_store import PositionStore
from prompttree.adapters.snapshot_sinks import SnapshotSink
from prompttree.config import DEFAULT_ROOT_POSITION, LayoutSpacing
from prompttree.engine.background import BackgroundTasks
from prompttree.engine.layout import DEFAULT_SPACING, layout_children
from prompttree.engine.sync_policy import CallClass, run_remote
from prompttree.errors import (
    DuplicateNodeError,
    InitializationError,
    NodeNotFoundError,
    StructuralWriteError,
)
from prompttree.models.flow_graph import (
    FlowSnapshot,
    NodeAction,
    PromptEdge,
    PromptNode,
    RenderNode,
)
from prompttree.models.prompt_entity import FlowPosition, PromptEntity, PromptRef
from prompttree.sdk.prompt_client import PromptStoreClient
from prompttree.utils.identifiers import edge_id

logger = logging.getLogger(__name__)


def editor_path(node: PromptNode) -> str:
    """Path of the prompt editor screen for a node."""
    return f"/prompts/{node.name}/{node.version}"


class GraphStore:
    """Canonical nodes and edges of the tree currently open in the editor."""

    def __init__(
        self,
        client: PromptStoreClient,
        *,
        sinks: Iterable[SnapshotSink] = (),
        spacing: LayoutSpacing = DEFAULT_SPACING,
        opener: Callable[[str], Any] | None = None,
        tasks: BackgroundTasks | None = None,
    ) -> None:
        """
        Args:
            client: Remote prompt store client
            sinks: Receivers of the drawable graph (the canvas)
            spacing: Layout increments for nodes without a saved position
            opener: Called with the editor path when a node is opened
            tasks: Registry for fire-and-forget calls; one is created if omitted
        """
        self.client = client
        self.spacing = spacing
        self.tasks = tasks or BackgroundTasks()
        self.positions = PositionStore(client, self.tasks)
        self.error: Exception | None = None
        self.root_id: str | None = None

        self._sinks: list[SnapshotSink] = list(sinks)
        self._opener = opener
        self._nodes: dict[str, PromptNode] = {}
        self._edges: dict[str, PromptEdge] = {}
        self._detaching: set[str] = set()
        # bumped whenever the view is rebuilt or closed; late results from an
        # older generation are dropped
        self._generation = 0

        self._add_handler: Callable[[str], Any] | None = None
        self._actions: dict[NodeAction, Callable[[str], Any]] = {
            NodeAction.open: self._open_node,
            NodeAction.add: self._request_add,
            NodeAction.detach: self._schedule_detach,
        }

    # --- Queries ---

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def nodes(self) -> list[PromptNode]:
        return list(self._nodes.values())

    @property
    def edges(self) -> list[PromptEdge]:
        return list(self._edges.values())

    def get_node(self, node_id: str) -> PromptNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id) from None

    def snapshot(self) -> FlowSnapshot:
        """Build the drawable graph from scratch."""
        return FlowSnapshot(
            root_id=self.root_id,
            nodes=[
                RenderNode(
                    id=node.key,
                    position=node.position.model_copy(),
                    name=node.name,
                    version=node.version,
                    detachable=node.has_detach,
                    actions=self.actions_for(node.key),
                )
                for node in self._nodes.values()
            ],
            edges=[edge.model_copy() for edge in self._edges.values()],
        )

    def add_sink(self, sink: SnapshotSink) -> None:
        self._sinks.append(sink)

    def _notify(self) -> None:
        if not self._sinks:
            return
        snapshot = self.snapshot()
        for sink in self._sinks:
            try:
                sink.append(snapshot)
            except Exception:
                # a broken canvas must not corrupt the graph
                logger.warning("Snapshot sink %s failed", sink, exc_info=True)

    # --- View lifecycle ---

    async def initialize(self, root: PromptRef) -> None:
        """Load the root prompt and its direct children.

        A load overtaken by a newer ``initialize`` or by ``close`` returns
        quietly and leaves the current view alone, whether its reads
        succeeded or not.

        Raises:
            InitializationError: If either read fails. The graph is left empty.
        """
        self._reset()
        generation = self._generation
        context = {"root": root.key}

        root_result = await run_remote(
            CallClass.read, lambda: self.client.get_prompt(root), context
        )
        if generation != self._generation:
            logger.debug("View of %s closed while loading", root.key)
            return
        if not root_result.ok:
            self._fail_initialization(root, root_result.error)
        children_result = await run_remote(
            CallClass.read, lambda: self.client.get_children(root), context
        )
        if generation != self._generation:
            logger.debug("View of %s closed while loading", root.key)
            return
        if not children_result.ok:
            self._fail_initialization(root, children_result.error)

        root_entity: PromptEntity = root_result.value
        root_node = PromptNode(
            name=root_entity.name,
            version=root_entity.version,
            position=(
                root_entity.metadata.flow_position
                or FlowPosition(x=DEFAULT_ROOT_POSITION[0], y=DEFAULT_ROOT_POSITION[1])
            ),
            is_root=True,
        )
        nodes: dict[str, PromptNode] = {root_node.key: root_node}
        unplaced: list[PromptNode] = []
        for child in children_result.value:
            if child.key in nodes:
                logger.warning("Skipping duplicate prompt %s under %s", child.key, root.key)
                continue
            saved = child.saved_position
            node = PromptNode(
                name=child.name,
                version=child.version,
                position=saved or FlowPosition(),
            )
            nodes[node.key] = node
            if saved is None:
                unplaced.append(node)

        for node, position in zip(
            unplaced, layout_children(root_node.position, unplaced, self.spacing)
        ):
            node.position = position

        self._nodes = nodes
        self._edges = {}
        for key in nodes:
            if key != root_node.key:
                self._add_edge(root_node.key, key)
        self.root_id = root_node.key
        logger.info(
            "Loaded %s with %d children (%d placed automatically)",
            root_node.key,
            len(nodes) - 1,
            len(unplaced),
        )
        self._notify()

    def _fail_initialization(self, root: PromptRef, cause: Exception | None) -> None:
        self._reset()
        self.error = InitializationError(f"Could not load prompt tree {root.key}: {cause}")
        self._notify()
        raise self.error from cause

    def _reset(self) -> None:
        self._generation += 1
        self._nodes = {}
        self._edges = {}
        self._detaching = set()
        self.root_id = None
        self.error = None

    def close(self) -> None:
        """Discard the graph; calls still in flight no longer touch it."""
        self._reset()
        logger.debug("View closed with %d remote calls in flight", len(self.tasks))

    async def wait_idle(self) -> None:
        """Wait for every fire-and-forget remote call to resolve."""
        await self.tasks.wait()

    # --- Positional operations ---

    def apply_position_change(
        self,
        node_id: str,
        position: FlowPosition,
        is_final: bool,
    ) -> asyncio.Task | None:
        """Move a node; persist the position only when the drag ended.

        Returns:
            The persist task for a final update, otherwise None
        """
        node = self._nodes.get(node_id)
        if node is None:
            logger.debug("Ignoring position change for unknown node %s", node_id)
            return None
        node.position = FlowPosition(x=position.x, y=position.y)
        self._notify()
        if not is_final:
            return None
        return self.positions.persist(node.ref, node.position)

    # --- Structural operations ---

    def _add_edge(self, source: str, target: str) -> PromptEdge:
        edge = PromptEdge(id=edge_id(source, target), source=source, target=target)
        self._edges[edge.id] = edge
        return edge

    def connect(self, source: str, target: str) -> PromptEdge | None:
        """Draw an edge for a manual connect gesture.

        The edge is local only; parentage in the store is set through
        the add-child workflow.
        """
        if source not in self._nodes or target not in self._nodes:
            logger.warning("Cannot connect %s -> %s: unknown endpoint", source, target)
            return None
        if source == target:
            return None
        if edge_id(source, target) in self._edges:
            return None
        edge = self._add_edge(source, target)
        self._notify()
        return edge

    def _drop(self, node_id: str) -> None:
        del self._nodes[node_id]
        self._edges = {
            eid: edge
            for eid, edge in self._edges.items()
            if edge.source != node_id and edge.target != node_id
        }

    def remove_from_view(self, node_id: str) -> bool:
        """Hide a node and its edges without touching the store."""
        node = self._nodes.get(node_id)
        if node is None or node.is_root:
            return False
        self._drop(node_id)
        self._notify()
        return True

    async def detach(self, node_id: str) -> bool:
        """Clear the node's parent in the store, then remove it from the view.

        The remote prompt is not deleted. Nothing changes locally unless
        the store accepted the write.

        Returns:
            True if the node was detached
        """
        node = self._nodes.get(node_id)
        if node is None:
            logger.warning("Cannot detach unknown node %s", node_id)
            return False
        if node.is_root:
            logger.warning("Refusing to detach root node %s", node_id)
            return False
        if node_id in self._detaching:
            logger.debug("Detach of %s already in flight", node_id)
            return False

        generation = self._generation
        self._detaching.add(node_id)
        try:
            outcome = await run_remote(
                CallClass.detach,
                lambda: self.client.clear_parent(node.ref),
                {"node": node_id, "body": {"parentId": None}},
            )
        finally:
            self._detaching.discard(node_id)

        if not outcome.ok:
            if outcome.user_visible and generation == self._generation:
                self.error = StructuralWriteError(f"Could not detach {node_id}: {outcome.error}")
            return False
        if generation != self._generation or node_id not in self._nodes:
            return True

        self._drop(node_id)
        logger.info("Detached %s", node_id)
        self._notify()
        return True

    def add_child(
        self,
        parent_id: str,
        entity: PromptEntity,
        position: FlowPosition | None = None,
    ) -> PromptNode:
        """Fold a prompt the store already parented under *parent_id* into the view.

        Position order: *position*, the prompt's saved position, then
        the layout engine.
        """
        parent = self.get_node(parent_id)
        if entity.key in self._nodes:
            raise DuplicateNodeError(f"Prompt {entity.key} is already in the graph")

        if position is None:
            position = entity.saved_position
        if position is None:
            position = layout_children(parent.position, 1, self.spacing)[0]

        node = PromptNode(name=entity.name, version=entity.version, position=position)
        self._nodes[node.key] = node
        self._add_edge(parent_id, node.key)
        logger.info("Added %s under %s", node.key, parent_id)
        self._notify()
        return node

    # --- Node actions ---

    def bind_add_handler(self, handler: Callable[[str], Any]) -> None:
        """Route the ``add`` action of every node to *handler*."""
        self._add_handler = handler

    def actions_for(self, node_id: str) -> list[NodeAction]:
        node = self.get_node(node_id)
        actions = [NodeAction.open]
        if self._add_handler is not None:
            actions.append(NodeAction.add)
        if node.has_detach:
            actions.append(NodeAction.detach)
        return actions

    def dispatch(self, node_id: str, action: NodeAction | str) -> Any:
        """Run the behaviour bound to *action* for the node with *node_id*."""
        action = NodeAction(action)
        if action not in self.actions_for(node_id):
            raise ValueError(f"Action {action.value!r} is not available on {node_id}")
        return self._actions[action](node_id)

    def _open_node(self, node_id: str) -> str:
        path = editor_path(self.get_node(node_id))
        if self._opener is not None:
            self._opener(path)
        return path

    def _request_add(self, node_id: str) -> Any:
        return self._add_handler(node_id)

    def _schedule_detach(self, node_id: str) -> asyncio.Task:
        return self.tasks.spawn(self.detach(node_id), name=f"detach:{node_id}")
