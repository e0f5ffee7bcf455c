"""Streaming chat endpoint.

Validates the request, selects the chat model and focus-mode handler, then
streams the handler's events to the browser as Server-Sent Events:

    data: {"type": "sources", "data": [...], "messageId": "..."}
    data: {"type": "message", "data": "token", "messageId": "..."}
    data: {"type": "messageEnd", "messageId": "..."}

A failure mid-stream ends the stream with ``{"type": "error", "data": ...}``.
Chat history is kept by the browser; nothing is persisted here.
"""

import logging
import secrets
from collections.abc import AsyncGenerator, AsyncIterator

import httpx
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from src.agent.providers import (
    UsageTracker,
    get_available_chat_model_providers,
    get_usage_tracker,
    resolve_chat_model,
)
from src.agent.search_agent import AgentEvent, AgentEventType, SearchFn, get_search_handler
from src.api.dependencies import LLMFactory, get_app_config, get_llm_factory, get_search_fn
from src.cache import DocumentCache, get_document_cache
from src.config import AppConfig
from src.models.schemas import ChatRequest, ModelSelection, StreamEvent, StreamEventType
from src.parsing import DocumentContent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
}


def describe_error(exc: Exception) -> str:
    """User-facing description of a chat failure."""
    text = str(exc)
    if isinstance(exc, httpx.ConnectError) or "ECONNREFUSED" in text:
        return (
            "Could not connect to search service. "
            "SearxNG may not be running or configured correctly."
        )
    if isinstance(exc, httpx.InvalidURL) or "Invalid URL" in text:
        return "Invalid search service URL. Please check your SearxNG configuration."
    return "An error occurred while processing chat request"


def _message_id() -> str:
    return secrets.token_hex(7)


def _load_documents(file_ids: list[str], cache: DocumentCache) -> list[DocumentContent]:
    documents = []
    for file_id in file_ids:
        document = cache.get(file_id)
        if document is None:
            logger.warning(f"Uploaded file {file_id} not found or expired, skipping")
            continue
        documents.append(document)
    return documents


async def _stream_events(
    events: AsyncIterator[AgentEvent],
    ai_message_id: str,
) -> AsyncGenerator[str]:
    """Convert handler events to SSE frames, always ending the stream."""
    try:
        async for event in events:
            if event.type == AgentEventType.RESPONSE:
                event_type = StreamEventType.MESSAGE
            else:
                event_type = StreamEventType.SOURCES
            yield StreamEvent(
                type=event_type, data=event.data, message_id=ai_message_id
            ).to_sse()
    except Exception as e:
        logger.error(f"Error while streaming chat response: {e}", exc_info=True)
        yield StreamEvent(type=StreamEventType.ERROR, data=describe_error(e)).to_sse()
        return

    yield StreamEvent(type=StreamEventType.MESSAGE_END, message_id=ai_message_id).to_sse()


@router.post("/chat")
async def chat(
    request: ChatRequest,
    config: AppConfig = Depends(get_app_config),
    search_fn: SearchFn = Depends(get_search_fn),
    llm_factory: LLMFactory = Depends(get_llm_factory),
    usage: UsageTracker = Depends(get_usage_tracker),
    cache: DocumentCache = Depends(get_document_cache),
) -> StreamingResponse:
    """Answer a chat message with a streamed, source-grounded response.

    Raises:
        400: Empty message, unknown chat model or unknown focus mode.
        429: The selected model's daily usage limit is reached.
        500: The model client could not be created.
    """
    if not request.message.content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please provide a message to process",
        )

    providers = get_available_chat_model_providers(config)
    selection = request.chat_model or ModelSelection()
    spec = resolve_chat_model(providers, selection.provider, selection.name)
    if spec is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid chat model",
        )

    # No embedding providers are served; any requested model is unresolvable
    embedding = request.embedding_model
    if embedding is None or not (embedding.provider or embedding.name):
        logger.warning("No embedding model available, proceeding with chat only")
    else:
        logger.warning(
            f"Embedding model {embedding.provider}/{embedding.name} is not available, "
            "proceeding with chat only"
        )

    handler = get_search_handler(request.focus_mode or "", search_fn)
    if handler is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid focus mode",
        )

    if not usage.can_use(spec):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Daily limit reached for {spec.display_name}. Try again tomorrow.",
        )

    try:
        llm = llm_factory(spec)
    except Exception as e:
        logger.error(f"An error occurred while processing chat request: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=describe_error(e),
        ) from e
    usage.record_use(spec)

    human_message_id = request.message.message_id or _message_id()
    ai_message_id = _message_id()
    logger.info(
        f"Chat {request.message.chat_id}: {human_message_id} -> {ai_message_id} "
        f"({request.focus_mode}/{request.optimization_mode.value}, {spec.provider}/{spec.key})"
    )

    events = handler.search_and_answer(
        request.message.content,
        request.history_pairs(),
        llm,
        optimization_mode=request.optimization_mode,
        documents=_load_documents(request.files, cache),
        system_instructions=request.system_instructions,
    )

    return StreamingResponse(
        _stream_events(events, ai_message_id),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )
