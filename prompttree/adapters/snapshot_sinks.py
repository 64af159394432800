"""Sinks that receive the drawable graph after every change."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from prompttree.models.flow_graph import FlowSnapshot


class SnapshotSink(Protocol):
    """Protocol for the rendering side of the graph store."""

    def append(self, snapshot: FlowSnapshot) -> None:
        """Receive a freshly built snapshot."""
        ...


class ListSink:
    """stores snapshots in a list."""

    def __init__(self) -> None:
        self.snapshots: list[FlowSnapshot] = []

    def append(self, snapshot: FlowSnapshot) -> None:
        """Append a snapshot to the list."""
        self.snapshots.append(snapshot)

    @property
    def latest(self) -> FlowSnapshot | None:
        return self.snapshots[-1] if self.snapshots else None

    def clear(self) -> None:
        """Clear all snapshots."""
        self.snapshots.clear()


class FileSink:
    """Writes the latest snapshot to a JSON file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, snapshot: FlowSnapshot) -> None:
        """Overwrite the file with the snapshot."""
        self.path.write_text(snapshot.model_dump_json(indent=2))
