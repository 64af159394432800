"""Adapters between the graph store and its collaborators."""

from prompttree.adapters.position_store import PositionStore
from prompttree.adapters.snapshot_sinks import FileSink, ListSink, SnapshotSink

__all__ = [
    "FileSink",
    "ListSink",
    "PositionStore",
    "SnapshotSink",
]
