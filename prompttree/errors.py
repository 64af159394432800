"""Exception taxonomy for the structure editor engine."""

from __future__ import annotations


class PromptTreeError(Exception):
    """Base class for every error raised by prompttree."""


class RemoteStoreError(PromptTreeError):
    """Raised when a call to the remote prompt store fails.

    Covers both transport errors (no response) and non-2xx responses.
    """

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        path: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.path = path
        self.status_code = status_code


class PromptNotFoundError(RemoteStoreError):
    """The store answered 404 for a prompt."""


class InitializationError(PromptTreeError):
    """The root prompt or its children could not be fetched."""


class StructuralWriteError(PromptTreeError):
    """A create, re-parent or detach call failed; the graph is unchanged."""


class PositionWriteError(PromptTreeError):
    """Persisting a flow position failed; the local position is kept."""


class NodeNotFoundError(PromptTreeError, KeyError):
    """No node with the given key is drawn in the graph."""


class DuplicateNodeError(PromptTreeError):
    """A node with the same name and version is already drawn."""


class WorkflowStateError(PromptTreeError):
    """An add-child workflow step was called in the wrong state."""
