"""FastAPI dependencies shared by the API routers.

Tests replace these through ``app.dependency_overrides`` to run the API
without network access or real model credentials.
"""

from collections.abc import Callable
from functools import partial

from fastapi import Depends

from src.agent.chat_agent import AgentService, get_agent_service
from src.agent.providers import ChatModelSpec
from src.agent.search_agent import SearchFn
from src.config import AppConfig, load_config
from src.search import search_searxng

LLMFactory = Callable[[ChatModelSpec], AgentService]


def get_app_config() -> AppConfig:
    """Load the configuration per request so edits apply without restart."""
    return load_config()


def get_search_fn(config: AppConfig = Depends(get_app_config)) -> SearchFn:
    return partial(search_searxng, config=config)


def get_llm_factory() -> LLMFactory:
    return get_agent_service
