"""Wire models of the remote prompt store.

The store speaks camelCase JSON; fields are snake_case here and
serialized with ``by_alias=True``. Unknown fields are preserved so a
round trip through the engine never drops data the store owns.
"""

from pydantic import BaseModel, ConfigDict, Field

from prompttree.utils.identifiers import node_key


class FlowPosition(BaseModel):
    """A canvas coordinate."""

    x: float = 0.0
    y: float = 0.0

    def is_origin(self) -> bool:
        """True for (0, 0), which the store uses for "never placed"."""
        return self.x == 0 and self.y == 0

    def offset(self, dx: float = 0.0, dy: float = 0.0) -> "FlowPosition":
        return FlowPosition(x=self.x + dx, y=self.y + dy)


class PromptMetadata(BaseModel):
    """Free-form prompt metadata; only ``flowPosition`` matters to the graph."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    author: str | None = None
    description: str | None = None
    category: str | None = None
    labels: list[str] | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")
    flow_position: FlowPosition | None = Field(default=None, alias="flowPosition")


class PromptConfig(BaseModel):
    """Model settings attached to a prompt."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    model: str = "gpt-3.5-turbo"
    temperature: float = 0.7
    max_tokens: int = Field(default=1000, alias="maxTokens")


class PromptRef(BaseModel):
    """The (name, version) identity of a prompt."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str

    @property
    def key(self) -> str:
        return node_key(self.name, self.version)


class PromptEntity(BaseModel):
    """A prompt as returned by ``GET /prompts/{name}/{version}``."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    version: str
    id: str | None = None
    content: str | None = None
    static_tags: list[str] = Field(default_factory=list, alias="staticTags")
    dynamic_tags: list[dict] = Field(default_factory=list, alias="dynamicTags")
    conditions: list[dict] = Field(default_factory=list)
    supported_languages: list[str] = Field(default_factory=list, alias="supportedLanguages")
    parent_id: str | None = Field(default=None, alias="parentId")
    metadata: PromptMetadata = Field(default_factory=PromptMetadata)
    config: PromptConfig | None = None

    @property
    def ref(self) -> PromptRef:
        return PromptRef(name=self.name, version=self.version)

    @property
    def key(self) -> str:
        return node_key(self.name, self.version)

    @property
    def saved_position(self) -> FlowPosition | None:
        """The persisted flow position, or None when never placed."""
        position = self.metadata.flow_position
        if position is None or position.is_origin():
            return None
        return position


class CreatePromptRequest(BaseModel):
    """Body of ``POST /prompts``; the parent reference travels inline."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    version: str
    content: str
    static_tags: list[str] = Field(default_factory=list, alias="staticTags")
    dynamic_tags: list[dict] = Field(default_factory=list, alias="dynamicTags")
    conditions: list[dict] = Field(default_factory=list)
    supported_languages: list[str] = Field(default_factory=list, alias="supportedLanguages")
    parent_id: str | None = Field(default=None, alias="parentId")
    metadata: PromptMetadata = Field(default_factory=PromptMetadata)
    config: PromptConfig = Field(default_factory=PromptConfig)

    def to_payload(self) -> dict:
        """Serialize to the camelCase JSON body the store expects."""
        payload = self.model_dump(by_alias=True, exclude_none=True)
        payload["parentId"] = self.parent_id
        return payload
