"""prompttree - structure editor engine for versioned prompt hierarchies."""

from prompttree.models.prompt_entity import (
    CreatePromptRequest,
    FlowPosition,
    PromptEntity,
    PromptRef,
)
from prompttree.models.flow_graph import (
    FlowSnapshot,
    NodeAction,
    PromptEdge,
    PromptNode,
)
from prompttree.sdk.prompt_client import PromptStoreClient
from prompttree.engine.layout import layout_children
from prompttree.engine.graph_store import GraphStore
from prompttree.engine.add_child import AddChildWorkflow, ChildSource, WorkflowState
from prompttree.errors import (
    InitializationError,
    PromptTreeError,
    RemoteStoreError,
    StructuralWriteError,
)

__all__ = [
    # Remote entities
    "CreatePromptRequest",
    "FlowPosition",
    "PromptEntity",
    "PromptRef",
    # Drawn graph
    "FlowSnapshot",
    "NodeAction",
    "PromptEdge",
    "PromptNode",
    # Engine
    "PromptStoreClient",
    "layout_children",
    "GraphStore",
    "AddChildWorkflow",
    "ChildSource",
    "WorkflowState",
    # Errors
    "InitializationError",
    "PromptTreeError",
    "RemoteStoreError",
    "StructuralWriteError",
]
