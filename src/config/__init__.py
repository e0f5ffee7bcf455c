"""Application configuration backed by a TOML file.

Settings live in ``config.toml`` (or the file named by ``CONFIG_PATH``) and
are validated into Pydantic models. Environment variables override the
endpoint and API keys so deployments can inject secrets without editing the
file.
"""

from src.config.settings import (
    AppConfig,
    get_cerebras_api_key,
    get_config_path,
    get_creator,
    get_deep_research_api_key,
    get_deep_research_daily_limit,
    get_keep_alive,
    get_searxng_api_endpoint,
    get_similarity_measure,
    get_version,
    load_config,
    merge_configs,
    update_config,
)

__all__ = [
    "AppConfig",
    "get_cerebras_api_key",
    "get_config_path",
    "get_creator",
    "get_deep_research_api_key",
    "get_deep_research_daily_limit",
    "get_keep_alive",
    "get_searxng_api_endpoint",
    "get_similarity_measure",
    "get_version",
    "load_config",
    "merge_configs",
    "update_config",
]
