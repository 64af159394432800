"""Data models for prompttree."""

from prompttree.models.prompt_entity import (
    CreatePromptRequest,
    FlowPosition,
    PromptConfig,
    PromptEntity,
    PromptMetadata,
    PromptRef,
)
from prompttree.models.flow_graph import (
    FlowSnapshot,
    NodeAction,
    PromptEdge,
    PromptNode,
    RenderNode,
)

__all__ = [
    # Remote entities
    "CreatePromptRequest",
    "FlowPosition",
    "PromptConfig",
    "PromptEntity",
    "PromptMetadata",
    "PromptRef",
    # Drawn graph
    "FlowSnapshot",
    "NodeAction",
    "PromptEdge",
    "PromptNode",
    "RenderNode",
]
