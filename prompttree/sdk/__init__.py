"""SDK for talking to the remote prompt store."""

from prompttree.sdk.prompt_client import PromptStoreClient

__all__ = [
    "PromptStoreClient",
]
