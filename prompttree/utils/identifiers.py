"""Node key, edge id and prompt name utilities."""

import math
import re

KEY_SEPARATOR = "_"


def node_key(name: str, version: str) -> str:
    """Build the graph key of a prompt instance, e.g. ``planner_1.0``."""
    return f"{name}{KEY_SEPARATOR}{version}"


def edge_id(source: str, target: str) -> str:
    """Build the id of a parent -> child edge."""
    return f"e-{source}-{target}"


def normalize_prompt_name(value: str) -> str:
    """Lowercase a typed prompt name and turn whitespace runs into dashes.

    Other characters are left alone; the store may normalize further.
    """
    return re.sub(r"\s+", "-", value.lower())


def round_coordinate(value: float) -> int:
    """Round half up, so 10.5 -> 11 and -10.5 -> -10."""
    return int(math.floor(value + 0.5))
