"""Placement of child nodes that have no saved flow position."""

from __future__ import annotations

from typing import Sized

from prompttree.config import LayoutSpacing
from prompttree.models.prompt_entity import FlowPosition

DEFAULT_SPACING = LayoutSpacing()


def layout_children(
    parent_position: FlowPosition,
    children: int | Sized,
    spacing: LayoutSpacing = DEFAULT_SPACING,
) -> list[FlowPosition]:
    """Place children on one row below their parent, centered on it.

    Deterministic: only call it for children that lack a saved position,
    it knows nothing about positions already persisted.

    Args:
        parent_position: Position of the parent node
        children: The children to place, or how many there are
        spacing: Vertical drop and horizontal gap between siblings

    Returns:
        One position per child, left to right
    """
    count = children if isinstance(children, int) else len(children)
    center = (count - 1) / 2
    return [
        FlowPosition(
            x=parent_position.x + (index - center) * spacing.horizontal,
            y=parent_position.y + spacing.vertical,
        )
        for index in range(count)
    ]
