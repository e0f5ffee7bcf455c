"""LLM orchestration for search-grounded chat.

Responsibilities:
    - Chat model provider discovery and selection
    - Per-day usage limits for rate-limited models
    - Agno model clients with streaming token generation
    - Focus-mode search pipelines (rephrase, search, cite, answer)

Keeps a clean separation from the HTTP layer.
"""

from src.agent.chat_agent import AgentService, get_agent_service
from src.agent.config import AgentConfig, get_agent_config
from src.agent.providers import (
    ChatModelSpec,
    UsageTracker,
    get_available_chat_model_providers,
    get_usage_tracker,
    resolve_chat_model,
)
from src.agent.search_agent import (
    FOCUS_MODES,
    AgentEvent,
    AgentEventType,
    MetaSearchAgent,
    OptimizationMode,
    get_search_handler,
)

__all__ = [
    "FOCUS_MODES",
    "AgentConfig",
    "AgentEvent",
    "AgentEventType",
    "AgentService",
    "ChatModelSpec",
    "MetaSearchAgent",
    "OptimizationMode",
    "UsageTracker",
    "get_agent_config",
    "get_agent_service",
    "get_available_chat_model_providers",
    "get_search_handler",
    "get_usage_tracker",
    "resolve_chat_model",
]
