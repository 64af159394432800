"""Data model of the prompt structure graph as it is drawn.

Nodes carry identity and flags only. What a click on a node does is
resolved by the graph store from the node id, so rebuilding the node
set never leaves a stale handler behind.
"""

from enum import Enum

from pydantic import BaseModel

from prompttree.models.prompt_entity import FlowPosition, PromptRef
from prompttree.utils.identifiers import node_key


class NodeAction(str, Enum):
    """Actions a rendered node can offer."""

    open = "open"
    add = "add"
    detach = "detach"


class PromptNode(BaseModel):
    """a prompt drawn on the canvas."""

    name: str
    version: str
    position: FlowPosition
    is_root: bool = False

    @property
    def key(self) -> str:
        return node_key(self.name, self.version)

    @property
    def ref(self) -> PromptRef:
        return PromptRef(name=self.name, version=self.version)

    @property
    def has_detach(self) -> bool:
        return not self.is_root


class PromptEdge(BaseModel):
    """a directed parent -> child edge."""

    id: str
    source: str
    target: str


class RenderNode(BaseModel):
    """What the canvas needs to paint one node."""

    id: str
    position: FlowPosition
    name: str
    version: str
    detachable: bool
    actions: list[NodeAction]


class FlowSnapshot(BaseModel):
    """the full drawable state, rebuilt after every change."""

    root_id: str | None = None
    nodes: list[RenderNode]
    edges: list[PromptEdge]
