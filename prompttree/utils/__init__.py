"""Utility functions for prompttree."""

from prompttree.utils.identifiers import (
    edge_id,
    node_key,
    normalize_prompt_name,
    round_coordinate,
)

__all__ = [
    "edge_id",
    "node_key",
    "normalize_prompt_name",
    "round_coordinate",
]
