"""The "add child" flow of the structure editor.

IDLE -> COLLECTING (dialog open) -> COMMITTING (remote call in flight)
-> IDLE on success, back to COLLECTING on failure so the user can retry.
"""

from __future__ import annotations

import logging
from enum import Enum

from prompttree.config import NewPromptDefaults
from prompttree.engine.graph_store import GraphStore
from prompttree.engine.sync_policy import CallClass, run_remote
from prompttree.errors import StructuralWriteError, WorkflowStateError
from prompttree.models.flow_graph import PromptNode
from prompttree.models.prompt_entity import (
    CreatePromptRequest,
    PromptEntity,
    PromptRef,
)
from prompttree.utils.identifiers import normalize_prompt_name

logger = logging.getLogger(__name__)


class WorkflowState(str, Enum):
    idle = "idle"
    collecting = "collecting"
    committing = "committing"


class ChildSource(str, Enum):
    """The two tabs of the add-child dialog."""

    new_prompt = "new_prompt"
    existing_prompt = "existing_prompt"


class AddChildWorkflow:
    """Collects what to add under a parent node and commits it to the store.

    Binds itself to the ``add`` action of every node in *store*.
    """

    def __init__(
        self,
        store: GraphStore,
        defaults: NewPromptDefaults | None = None,
    ) -> None:
        self.store = store
        self.defaults = defaults or NewPromptDefaults()
        self.state = WorkflowState.idle
        self.parent_id: str | None = None
        self.source = ChildSource.new_prompt
        self.draft_name = ""
        self.draft_version = "1.0"
        self.selected: PromptRef | None = None
        self.candidates: list[PromptEntity] = []
        self.error: StructuralWriteError | None = None
        store.bind_add_handler(self.open)

    def open(self, parent_id: str) -> None:
        """Open the dialog for a new child of *parent_id*."""
        if self.state is WorkflowState.committing:
            raise WorkflowStateError("A child is already being committed")
        self.store.get_node(parent_id)
        self.parent_id = parent_id
        self.source = ChildSource.new_prompt
        self.draft_name = ""
        self.draft_version = "1.0"
        self.selected = None
        self.error = None
        self.state = WorkflowState.collecting

    def cancel(self) -> None:
        if self.state is WorkflowState.committing:
            raise WorkflowStateError("Cannot cancel while committing")
        self.state = WorkflowState.idle
        self.parent_id = None

    def _require_collecting(self) -> None:
        if self.state is not WorkflowState.collecting:
            raise WorkflowStateError(f"Expected collecting state, got {self.state.value}")

    def select_tab(self, source: ChildSource | str) -> None:
        self._require_collecting()
        self.source = ChildSource(source)

    def set_draft(self, name: str, version: str | None = None) -> None:
        self._require_collecting()
        self.draft_name = name
        if version is not None:
            self.draft_version = version

    def choose_existing(self, ref: PromptRef) -> None:
        self._require_collecting()
        self.source = ChildSource.existing_prompt
        self.selected = ref

    async def load_candidates(self) -> list[PromptEntity]:
        """Fetch prompts that could be linked as the child.

        Prompts already drawn are left out, their key would collide.
        """
        self._require_collecting()
        outcome = await run_remote(
            CallClass.read, self.store.client.list_prompts, {"parent": self.parent_id}
        )
        if not outcome.ok:
            self.candidates = []
            return []
        self.candidates = [p for p in outcome.value if p.key not in self.store]
        return self.candidates

    async def commit(self) -> PromptNode | None:
        """Commit the dialog.

        A refused write returns to collecting so the user can retry. Once
        the store accepted the write the dialog closes, even when the view
        changed meanwhile and nothing could be drawn; ``error`` says why.

        Returns:
            The node added to the graph, or None if nothing was drawn
        """
        self._require_collecting()
        if self.source is ChildSource.new_prompt:
            if not self.draft_name.strip():
                raise WorkflowStateError("A name is required for a new prompt")
            commit = self._commit_new
        else:
            if self.selected is None:
                raise WorkflowStateError("No existing prompt selected")
            commit = self._commit_existing

        self.state = WorkflowState.committing
        self.error = None
        try:
            written, node = await commit()
        except Exception:
            self.state = WorkflowState.collecting
            raise
        if not written:
            self.state = WorkflowState.collecting
            return None
        self.state = WorkflowState.idle
        self.parent_id = None
        return node

    def build_request(self) -> CreatePromptRequest:
        """Create payload for the draft: normalized name, parent inline."""
        parent = self.store.get_node(self.parent_id)
        metadata = self.defaults.metadata()
        metadata.flow_position = parent.position.offset(dy=self.store.spacing.vertical)
        return CreatePromptRequest(
            name=normalize_prompt_name(self.draft_name),
            version=self.draft_version,
            content=self.defaults.content,
            static_tags=list(self.defaults.static_tags),
            supported_languages=list(self.defaults.supported_languages),
            parent_id=self.parent_id,
            metadata=metadata,
            config=self.defaults.config.model_copy(),
        )

    async def _commit_new(self) -> tuple[bool, PromptNode | None]:
        parent_id = self.parent_id
        request = self.build_request()
        outcome = await run_remote(
            CallClass.create,
            lambda: self.store.client.create_prompt(request),
            {"parent": parent_id, "payload": request.to_payload()},
        )
        if not outcome.ok:
            self.error = StructuralWriteError(
                f"Could not create {request.name} under {parent_id}: {outcome.error}"
            )
            return False, None

        # the store may normalize the name differently; key off what it kept
        created: PromptEntity = outcome.value
        if parent_id not in self.store:
            logger.warning("Parent %s left the view before %s was created", parent_id, created.key)
            self.error = StructuralWriteError(
                f"Created {created.key} under {parent_id}, but {parent_id} is no longer in the view"
            )
            return True, None
        return True, self.store.add_child(
            parent_id, created, position=request.metadata.flow_position
        )

    async def _commit_existing(self) -> tuple[bool, PromptNode | None]:
        parent_id = self.parent_id
        ref = self.selected
        if ref.key in self.store:
            self.error = StructuralWriteError(f"Prompt {ref.key} is already in the graph")
            return False, None

        outcome = await run_remote(
            CallClass.reparent,
            lambda: self.store.client.set_parent(ref, parent_id),
            {"node": ref.key, "body": {"parentId": parent_id}},
        )
        if not outcome.ok:
            self.error = StructuralWriteError(
                f"Could not link {ref.key} under {parent_id}: {outcome.error}"
            )
            return False, None

        if parent_id not in self.store or ref.key in self.store:
            logger.warning("Graph changed while linking %s under %s", ref.key, parent_id)
            self.error = StructuralWriteError(
                f"Linked {ref.key} under {parent_id}, but the view changed before it could be drawn"
            )
            return True, None
        entity = next((p for p in self.candidates if p.key == ref.key), None)
        if entity is None:
            entity = PromptEntity(name=ref.name, version=ref.version)
        return True, self.store.add_child(parent_id, entity)
