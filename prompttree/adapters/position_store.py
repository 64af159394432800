"""Persists node positions after a drag ends."""

from __future__ import annotations

import asyncio
from dataclasses import replace

from prompttree.engine.background import BackgroundTasks
from prompttree.engine.sync_policy import CallClass, Outcome, run_remote
from prompttree.errors import PositionWriteError
from prompttree.models.prompt_entity import FlowPosition, PromptRef
from prompttree.sdk.prompt_client import PromptStoreClient


class PositionStore:
    """Patches ``metadata.flowPosition`` of a prompt, fire-and-forget.

    One write per completed drag, never retried. A failed write is logged
    by the sync policy and otherwise ignored: the canvas keeps the
    position the user dropped the node at. The task's outcome carries a
    :class:`PositionWriteError` chained to the remote failure.
    """

    def __init__(self, client: PromptStoreClient, tasks: BackgroundTasks) -> None:
        self.client = client
        self.tasks = tasks

    def persist(self, ref: PromptRef, position: FlowPosition) -> asyncio.Task:
        """Schedule the write and return its task without waiting for it."""
        # copy so later drags do not change what this write sends
        snapshot = position.model_copy()
        return self.tasks.spawn(
            self._write(ref, snapshot),
            name=f"persist-position:{ref.key}",
        )

    async def _write(self, ref: PromptRef, position: FlowPosition) -> Outcome:
        outcome = await run_remote(
            CallClass.position,
            lambda: self.client.update_flow_position(ref, position),
            {"node": ref.key, "flowPosition": position.model_dump()},
        )
        if outcome.ok:
            return outcome
        error = PositionWriteError(
            f"Could not persist position ({position.x}, {position.y}) of {ref.key}"
        )
        error.__cause__ = outcome.error
        return replace(outcome, error=error)
