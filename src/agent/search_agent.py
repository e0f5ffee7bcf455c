"""Search-and-answer pipeline behind every focus mode.

One ``MetaSearchAgent`` class serves all focus modes; the mode only changes
which engines are queried and whether the web is searched at all. The
optimization mode trades latency for depth:

    speed     raw query, 5 sources
    balanced  LLM-rephrased standalone query, 8 sources
    quality   rephrased query, 12 sources, full text of the top 3 pages

The pipeline is sequential: rephrase, search, emit sources, stream the
answer. Search backend trouble is absorbed by ``search_searxng``; model
errors propagate to the caller.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable, Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from src.agent.chat_agent import AgentService
from src.agent.config import AgentConfig, get_agent_config
from src.agent.prompts import (
    ANSWER_INSTRUCTIONS,
    NOT_NEEDED,
    REPHRASE_INSTRUCTIONS,
    WRITING_INSTRUCTIONS,
    build_answer_prompt,
    build_rephrase_prompt,
    format_history,
)
from src.parsing import DocumentContent
from src.search import (
    SearchResults,
    SearxngSearchOptions,
    fetch_page_text,
    search_searxng,
)

logger = logging.getLogger(__name__)

SearchFn = Callable[[str, SearxngSearchOptions | None], Awaitable[SearchResults]]
PageFetcher = Callable[[str], Awaitable[str]]

MAX_DOCUMENT_CHARS = 8000


class OptimizationMode(str, Enum):
    SPEED = "speed"
    BALANCED = "balanced"
    QUALITY = "quality"


class OptimizationSettings(BaseModel):
    rephrase: bool
    max_sources: int = Field(ge=1)
    pages_to_fetch: int = Field(ge=0)


OPTIMIZATION_SETTINGS: dict[OptimizationMode, OptimizationSettings] = {
    OptimizationMode.SPEED: OptimizationSettings(rephrase=False, max_sources=5, pages_to_fetch=0),
    OptimizationMode.BALANCED: OptimizationSettings(rephrase=True, max_sources=8, pages_to_fetch=0),
    OptimizationMode.QUALITY: OptimizationSettings(rephrase=True, max_sources=12, pages_to_fetch=3),
}


class FocusModeConfig(BaseModel):
    """How one focus mode searches.

    Attributes:
        name: Focus mode key sent by the client.
        search_web: False for modes that answer from the model alone.
        engines: SearxNG engines to restrict the search to (empty = all).
        instructions: System instructions for the answer step.
    """

    name: str
    search_web: bool = True
    engines: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=lambda: list(ANSWER_INSTRUCTIONS))


FOCUS_MODES: dict[str, FocusModeConfig] = {
    "webSearch": FocusModeConfig(name="webSearch"),
    "academicSearch": FocusModeConfig(
        name="academicSearch", engines=["arxiv", "google scholar", "pubmed"]
    ),
    "youtubeSearch": FocusModeConfig(name="youtubeSearch", engines=["youtube"]),
    "redditSearch": FocusModeConfig(name="redditSearch", engines=["reddit"]),
    "wolframAlphaSearch": FocusModeConfig(name="wolframAlphaSearch", engines=["wolframalpha"]),
    "writingAssistant": FocusModeConfig(
        name="writingAssistant",
        search_web=False,
        instructions=list(WRITING_INSTRUCTIONS),
    ),
}


class AgentEventType(str, Enum):
    RESPONSE = "response"
    SOURCES = "sources"


class AgentEvent(BaseModel):
    type: AgentEventType
    data: Any


class Source(BaseModel):
    """A citable source: a web result or an uploaded document."""

    title: str
    url: str | None = None
    content: str = ""
    kind: str = "web"


class MetaSearchAgent:
    """Runs the search-and-answer pipeline for one focus mode."""

    def __init__(
        self,
        focus: FocusModeConfig,
        search_fn: SearchFn = search_searxng,
        page_fetcher: PageFetcher = fetch_page_text,
        config: AgentConfig | None = None,
    ) -> None:
        self.focus = focus
        self._search = search_fn
        self._fetch_page = page_fetcher
        self._config = config or get_agent_config()

    async def _rephrase(self, llm: AgentService, message: str, transcript: str) -> str | None:
        """Return a standalone search query, or None when no search is needed."""
        rephrased = await llm.get_response(
            build_rephrase_prompt(message, transcript), REPHRASE_INSTRUCTIONS
        )
        rephrased = rephrased.strip().strip("`\"'")
        if rephrased.lower() == NOT_NEEDED:
            return None
        return rephrased or message

    async def _search_web(
        self,
        query: str,
        settings: OptimizationSettings,
    ) -> list[Source]:
        opts = SearxngSearchOptions(engines=self.focus.engines or None, language="en")
        found = await self._search(query, opts)
        logger.info(
            f"{self.focus.name}: {len(found.results)} results from {found.backend.value}"
        )

        sources = [
            Source(title=r.title or r.url, url=r.url, content=r.content or "")
            for r in found.results[: settings.max_sources]
            if r.url
        ]

        if settings.pages_to_fetch and sources:
            top = sources[: settings.pages_to_fetch]
            pages = await asyncio.gather(*(self._fetch_page(s.url) for s in top))
            for source, page_text in zip(top, pages, strict=True):
                if page_text:
                    source.content = page_text
        return sources

    @staticmethod
    def _document_sources(documents: Sequence[DocumentContent]) -> list[Source]:
        return [
            Source(
                title=doc.metadata.get("title") or doc.filename,
                content=doc.text[:MAX_DOCUMENT_CHARS],
                kind="document",
            )
            for doc in documents
            if doc.text.strip()
        ]

    async def search_and_answer(
        self,
        message: str,
        history: Sequence[tuple[str, str]],
        llm: AgentService,
        optimization_mode: OptimizationMode = OptimizationMode.BALANCED,
        documents: Sequence[DocumentContent] = (),
        system_instructions: str = "",
    ) -> AsyncGenerator[AgentEvent]:
        """Answer ``message``, yielding a sources event then answer chunks.

        Args:
            message: The user's question.
            history: Prior ``(role, content)`` turns, oldest first.
            llm: Chat model service for rephrasing and answering.
            optimization_mode: Latency/depth preset.
            documents: Uploaded documents to ground the answer in.
            system_instructions: Extra instructions from the user's settings.

        Yields:
            At most one ``sources`` event, then ``response`` text chunks.
        """
        settings = OPTIMIZATION_SETTINGS[optimization_mode]
        transcript = format_history(history, self._config.history_limit)

        sources: list[Source] = []
        if self.focus.search_web:
            query: str | None = message
            if settings.rephrase:
                query = await self._rephrase(llm, message, transcript)
            if query:
                sources.extend(await self._search_web(query, settings))
            else:
                logger.info(f"{self.focus.name}: search not needed for this message")

        sources.extend(self._document_sources(documents))

        if sources:
            yield AgentEvent(
                type=AgentEventType.SOURCES,
                data=[s.model_dump() for s in sources],
            )

        context = "\n\n".join(
            f"[{i}] {s.title}\n{s.content}" for i, s in enumerate(sources, start=1)
        )
        instructions = list(self.focus.instructions)
        if system_instructions.strip():
            instructions.append(f"User instructions: {system_instructions.strip()}")

        prompt = build_answer_prompt(message, context, transcript)
        async for chunk in llm.stream_response(prompt, instructions):
            yield AgentEvent(type=AgentEventType.RESPONSE, data=chunk)


def get_search_handler(
    focus_mode: str,
    search_fn: SearchFn = search_searxng,
) -> MetaSearchAgent | None:
    """Build the handler for a focus mode, or None if the mode is unknown."""
    focus = FOCUS_MODES.get(focus_mode)
    if focus is None:
        return None
    return MetaSearchAgent(focus, search_fn=search_fn)
