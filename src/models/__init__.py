"""Pydantic models for API requests and responses.

Provides type safety, validation, and automatic OpenAPI documentation.
Wire payloads use camelCase field names to match the browser client.

Models:
    - ChatRequest: Incoming chat request payload
    - StreamEvent: One event of the streamed chat response
    - UploadResponse: Document upload result
    - ModelsResponse: Available chat models per provider
    - ConfigView / ConfigUpdate: Settings screen payloads
"""

from src.models.schemas import (
    ChatModelInfo,
    ChatRequest,
    ConfigUpdate,
    ConfigView,
    IncomingMessage,
    ModelSelection,
    ModelsResponse,
    StreamEvent,
    StreamEventType,
    UploadResponse,
)

__all__ = [
    "ChatModelInfo",
    "ChatRequest",
    "ConfigUpdate",
    "ConfigView",
    "IncomingMessage",
    "ModelSelection",
    "ModelsResponse",
    "StreamEvent",
    "StreamEventType",
    "UploadResponse",
]
