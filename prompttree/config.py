"""Settings for the structure editor engine.

Values come from the environment; a ``.env`` file in the working
directory is loaded first.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from prompttree.models.prompt_entity import PromptConfig, PromptMetadata

load_dotenv()  # load environment variables from .env file

DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "INFO"


class ClientSettings(BaseModel):
    """Connection settings of the remote prompt store."""

    base_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    headers: dict[str, str] = Field(
        default_factory=lambda: {"Content-Type": "application/json"}
    )

    @classmethod
    def from_env(cls) -> "ClientSettings":
        return cls(
            base_url=os.getenv("PROMPTTREE_API_URL", DEFAULT_API_URL),
            timeout=float(os.getenv("PROMPTTREE_TIMEOUT", str(DEFAULT_TIMEOUT))),
        )


class LayoutSpacing(BaseModel):
    """Distances used when placing nodes that were never positioned."""

    vertical: float = 220.0
    horizontal: float = 250.0


# where the root goes when the store has no position for it
DEFAULT_ROOT_POSITION = (250.0, 5.0)


class NewPromptDefaults(BaseModel):
    """Fields a prompt created from the structure editor starts with."""

    content: str = "# New Prompt\n\nEnter your prompt content here."
    static_tags: list[str] = Field(default_factory=lambda: ["new"])
    supported_languages: list[str] = Field(default_factory=lambda: ["en"])
    description: str = "New prompt created from structure editor"
    category: str = "general"
    config: PromptConfig = Field(default_factory=PromptConfig)

    def metadata(self) -> PromptMetadata:
        return PromptMetadata(
            description=self.description,
            category=self.category,
            labels=[],
        )


def log_level_from_env() -> str:
    return os.getenv("PROMPTTREE_LOG_LEVEL", DEFAULT_LOG_LEVEL)
