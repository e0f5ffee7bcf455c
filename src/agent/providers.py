"""Chat model providers and per-day usage limits.

Each provider contributes models only when its API key is configured, so the
set of selectable models follows ``config.toml`` and the environment.
"""

import logging
import threading
from collections.abc import Callable
from datetime import date

from pydantic import BaseModel, Field

from src.config import (
    AppConfig,
    get_cerebras_api_key,
    get_deep_research_api_key,
    get_deep_research_daily_limit,
)

logger = logging.getLogger(__name__)

CEREBRAS_BASE_URL = "https://api.cerebras.ai/v1"


class ChatModelSpec(BaseModel):
    """A selectable chat model.

    Attributes:
        provider: Provider key (``cerebras``, ``deep_research``).
        key: Model identifier sent to the provider API.
        display_name: Human readable label.
        description: Optional longer description for the UI.
        api_key: Credential used to build the model client.
        base_url: OpenAI-compatible endpoint, when the provider uses one.
        temperature: Provider-preferred sampling temperature.
        daily_limit: Uses allowed per day, None for unlimited.
    """

    provider: str
    key: str
    display_name: str
    description: str | None = None
    api_key: str = Field(repr=False)
    base_url: str | None = None
    temperature: float = 0.2
    daily_limit: int | None = None


class UsageTracker:
    """In-memory per-day usage counter for rate-limited models."""

    def __init__(self, today: Callable[[], date] = date.today) -> None:
        self._today = today
        self._counts: dict[str, int] = {}
        self._lock = threading.Lock()

    def _usage_key(self, model_key: str) -> str:
        return f"{model_key}_usage_{self._today().isoformat()}"

    def current_usage(self, model_key: str) -> int:
        return self._counts.get(self._usage_key(model_key), 0)

    def can_use(self, spec: ChatModelSpec) -> bool:
        if spec.daily_limit is None:
            return True
        return self.current_usage(spec.key) < spec.daily_limit

    def record_use(self, spec: ChatModelSpec) -> None:
        if spec.daily_limit is None:
            return
        key = self._usage_key(spec.key)
        with self._lock:
            self._counts[key] = self._counts.get(key, 0) + 1

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()


def load_cerebras_chat_models(config: AppConfig) -> dict[str, ChatModelSpec]:
    api_key = get_cerebras_api_key(config)
    if not api_key:
        return {}

    return {
        "llama-3.3-70b": ChatModelSpec(
            provider="cerebras",
            key="llama-3.3-70b",
            display_name="Llama 3.3 70B",
            api_key=api_key,
            base_url=CEREBRAS_BASE_URL,
        ),
    }


def load_deep_research_chat_models(config: AppConfig) -> dict[str, ChatModelSpec]:
    """Deep research models, limited to a few searches per day."""
    api_key = get_deep_research_api_key(config)
    if not api_key:
        return {}

    return {
        "gemini-1.5-pro": ChatModelSpec(
            provider="deep_research",
            key="gemini-1.5-pro",
            display_name="Deep Research Pro (1 search/day)",
            description="Specialized for detailed research paper analysis",
            api_key=api_key,
            daily_limit=get_deep_research_daily_limit(config),
        ),
    }


CHAT_MODEL_PROVIDERS: dict[str, Callable[[AppConfig], dict[str, ChatModelSpec]]] = {
    "cerebras": load_cerebras_chat_models,
    "deep_research": load_deep_research_chat_models,
}


def get_available_chat_model_providers(
    config: AppConfig,
) -> dict[str, dict[str, ChatModelSpec]]:
    """Collect models from every provider that has at least one."""
    available: dict[str, dict[str, ChatModelSpec]] = {}
    for provider, loader in CHAT_MODEL_PROVIDERS.items():
        models = loader(config)
        if models:
            available[provider] = models
        else:
            logger.debug(f"Provider {provider} has no models (API key missing)")
    return available


def resolve_chat_model(
    providers: dict[str, dict[str, ChatModelSpec]],
    provider: str | None = None,
    name: str | None = None,
) -> ChatModelSpec | None:
    """Pick the requested model, defaulting to the first available.

    Args:
        providers: Output of ``get_available_chat_model_providers``.
        provider: Requested provider key, or None for the first provider.
        name: Requested model key, or None for the provider's first model.

    Returns:
        The matching model, or None when the request cannot be satisfied.
    """
    if not providers:
        return None

    provider_models = providers.get(provider or next(iter(providers)))
    if not provider_models:
        return None

    return provider_models.get(name or next(iter(provider_models)))


# Module-level tracker shared by all requests
_usage_tracker = UsageTracker()


def get_usage_tracker() -> UsageTracker:
    return _usage_tracker
