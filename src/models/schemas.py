from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.agent.search_agent import OptimizationMode


class _WireModel(BaseModel):
    """Base for payloads exchanged with the browser in camelCase."""

    model_config = ConfigDict(populate_by_name=True)


class IncomingMessage(_WireModel):
    """The user's new message.

    Attributes:
        message_id: Client-side id; generated when omitted.
        chat_id: Client-side chat session id.
        content: Message text.
    """

    message_id: str | None = Field(None, alias="messageId")
    chat_id: str | None = Field(None, alias="chatId")
    content: str = ""

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v: Any) -> Any:
        """Strip whitespace from content before validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class ModelSelection(_WireModel):
    provider: str | None = None
    name: str | None = None


class ChatRequest(_WireModel):
    """Request payload for the streaming chat endpoint.

    Attributes:
        message: The new user message.
        optimization_mode: speed, balanced or quality.
        focus_mode: Search handler key (webSearch, academicSearch, ...).
        history: Prior turns as ``[role, text]`` pairs, role ``human`` or ``assistant``.
        files: Upload ids to ground the answer in.
        chat_model: Requested provider/model; defaults to the first available.
        embedding_model: Accepted for client compatibility; unused.
        system_instructions: Extra instructions appended to the system prompt.
    """

    message: IncomingMessage
    optimization_mode: OptimizationMode = Field(
        OptimizationMode.BALANCED, alias="optimizationMode"
    )
    focus_mode: str | None = Field(None, alias="focusMode")
    history: list[tuple[str, str]] = Field(default_factory=list)
    files: list[str] = Field(default_factory=list)
    chat_model: ModelSelection | None = Field(None, alias="chatModel")
    embedding_model: ModelSelection | None = Field(None, alias="embeddingModel")
    system_instructions: str = Field("", alias="systemInstructions")

    @field_validator("history", mode="before")
    @classmethod
    def default_history(cls, v: Any) -> Any:
        """Treat a missing or non-list history as empty."""
        return v if isinstance(v, list) else []

    @field_validator("files", mode="before")
    @classmethod
    def default_files(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []

    @field_validator("system_instructions", mode="before")
    @classmethod
    def default_instructions(cls, v: Any) -> Any:
        return v if v is not None else ""

    def history_pairs(self) -> list[tuple[str, str]]:
        """History with roles normalized to ``user``/``assistant``."""
        return [
            ("user" if role == "human" else "assistant", text) for role, text in self.history
        ]


class StreamEventType(str, Enum):
    """Event types written to the chat stream."""

    MESSAGE = "message"
    SOURCES = "sources"
    MESSAGE_END = "messageEnd"
    ERROR = "error"


class StreamEvent(_WireModel):
    """One event in the chat response stream.

    Attributes:
        type: Event type.
        data: Token text, source list or error message.
        message_id: Id of the assistant message being streamed.
    """

    type: StreamEventType
    data: Any = None
    message_id: str | None = Field(None, alias="messageId")

    def to_sse(self) -> str:
        """Serialize as one Server-Sent Events ``data:`` frame."""
        return f"data: {self.model_dump_json(by_alias=True, exclude_none=True)}\n\n"


class UploadResponse(_WireModel):
    """Response after document upload processing.

    Attributes:
        file_id: Id to reference the document in chat requests.
        filename: Name of the uploaded file.
        pages: Number of pages in the document.
        characters: Length of the extracted text.
        success: Whether the upload was successful.
        error: Error message if upload failed.
    """

    file_id: str = Field(alias="fileId")
    filename: str
    pages: int
    characters: int
    success: bool
    error: str | None = None


class ChatModelInfo(_WireModel):
    name: str
    display_name: str = Field(alias="displayName")
    description: str | None = None


class ModelsResponse(_WireModel):
    chat_model_providers: dict[str, list[ChatModelInfo]] = Field(alias="chatModelProviders")


class ConfigView(_WireModel):
    """Non-secret view of the configuration for the settings screen."""

    searxng_url: str | None = Field(None, alias="searxngUrl")
    cerebras_api_key_set: bool = Field(alias="cerebrasApiKeySet")
    deep_research_api_key_set: bool = Field(alias="deepResearchApiKeySet")
    deep_research_daily_limit: int = Field(alias="deepResearchDailyLimit")
    similarity_measure: str = Field(alias="similarityMeasure")
    keep_alive: str = Field(alias="keepAlive")
    creator: str
    version: str


class ConfigUpdate(_WireModel):
    """Partial configuration update; omitted fields are left unchanged."""

    searxng_url: str | None = Field(None, alias="searxngUrl")
    cerebras_api_key: str | None = Field(None, alias="cerebrasApiKey")
    deep_research_api_key: str | None = Field(None, alias="deepResearchApiKey")
    deep_research_daily_limit: int | None = Field(None, ge=0, alias="deepResearchDailyLimit")

    def to_toml_update(self) -> dict[str, Any]:
        return {
            "API_ENDPOINTS": {"SEARXNG": self.searxng_url},
            "MODELS": {
                "CEREBRAS": {"API_KEY": self.cerebras_api_key},
                "DEEP_RESEARCH": {
                    "API_KEY": self.deep_research_api_key,
                    "DAILY_LIMIT": self.deep_research_daily_limit,
                },
            },
        }
