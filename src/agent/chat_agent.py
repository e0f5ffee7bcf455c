"""Agno-backed chat model service with streaming support.

Wraps Agno's Agent so the search pipeline sees a two-method interface:
``stream_response`` for answers and ``get_response`` for short helper calls
such as query rephrasing. Conversation history and search context arrive in
the prompt; the service itself keeps no state between requests.
"""

import logging
from collections.abc import AsyncGenerator

from agno.agent import Agent
from agno.models.base import Model
from agno.models.google import Gemini
from agno.models.openai.like import OpenAILike

from src.agent.config import AgentConfig, get_agent_config
from src.agent.providers import ChatModelSpec

logger = logging.getLogger(__name__)


class AgentService:
    """Runs prompts against one configured chat model.

    Instances are cached per model by ``get_agent_service``; the underlying
    Agno model client is created once and reused.
    """

    def __init__(self, spec: ChatModelSpec, config: AgentConfig | None = None) -> None:
        """Initialize the agent service.

        Args:
            spec: The chat model to run.
            config: Optional sampling configuration.
                    Loads from environment if not provided.
        """
        self._spec = spec
        self._config = config or get_agent_config()
        self._model = self._create_model()

    @property
    def spec(self) -> ChatModelSpec:
        return self._spec

    @property
    def temperature(self) -> float:
        """Configured override, else the model's own temperature."""
        if self._config.temperature is not None:
            return self._config.temperature
        return self._spec.temperature

    def _create_model(self) -> Model:
        """Build the Agno model client for the spec's provider.

        Cerebras exposes an OpenAI-compatible API; deep research runs on Gemini.

        Raises:
            ValueError: If the provider is unknown.
        """
        if self._spec.provider == "cerebras":
            return OpenAILike(
                id=self._spec.key,
                api_key=self._spec.api_key,
                base_url=self._spec.base_url,
                temperature=self.temperature,
                max_tokens=self._config.max_tokens,
            )
        if self._spec.provider == "deep_research":
            return Gemini(
                id=self._spec.key,
                api_key=self._spec.api_key,
                temperature=self.temperature,
                max_output_tokens=self._config.max_tokens,
            )
        raise ValueError(f"Unknown chat model provider: {self._spec.provider}")

    def _create_agent(self, instructions: list[str]) -> Agent:
        return Agent(
            model=self._model,
            instructions=instructions,
            markdown=True,
        )

    async def stream_response(
        self,
        prompt: str,
        instructions: list[str],
    ) -> AsyncGenerator[str]:
        """Stream answer chunks for a prompt.

        Args:
            prompt: Full user prompt, including context and history.
            instructions: System instructions for this call.

        Yields:
            Response text chunks as they arrive.
        """
        agent = self._create_agent(instructions)
        response_stream = agent.arun(prompt, stream=True)

        async for chunk in response_stream:
            if hasattr(chunk, "content") and chunk.content:
                yield chunk.content

    async def get_response(self, prompt: str, instructions: list[str]) -> str:
        """Get a complete, non-streamed response.

        Args:
            prompt: Full user prompt.
            instructions: System instructions for this call.

        Returns:
            Response text, stripped of surrounding whitespace.
        """
        agent = self._create_agent(instructions)
        response = await agent.arun(prompt)
        return (response.content or "").strip()


# Cached services keyed by (provider, model key)
_agent_services: dict[tuple[str, str], AgentService] = {}


def get_agent_service(spec: ChatModelSpec) -> AgentService:
    """Get or create the service for a chat model.

    Returns:
        The AgentService bound to ``spec``.
    """
    cache_key = (spec.provider, spec.key)
    service = _agent_services.get(cache_key)
    if service is None or service.spec.api_key != spec.api_key:
        logger.info(f"Creating agent service for {spec.provider}/{spec.key}")
        service = AgentService(spec)
        _agent_services[cache_key] = service
    return service
