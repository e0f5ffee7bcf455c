"""TOML configuration loading, typed access and partial updates.

The file layout mirrors the sections operators already know::

    [GENERAL]
    SIMILARITY_MEASURE = "cosine"
    KEEP_ALIVE = "5m"

    [MODELS.CEREBRAS]
    API_KEY = ""

    [MODELS.DEEP_RESEARCH]
    API_KEY = ""
    DAILY_LIMIT = 1

    [API_ENDPOINTS]
    SEARXNG = "http://localhost:8888"

    [APP]
    CREATOR = "InsightFlow"
    VERSION = "1.0.0"

Loading never raises: a missing or broken file falls back to defaults so the
chat service can still start and serve the scraping fallback.
"""

import logging
import os
from pathlib import Path
from typing import Any

import toml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.toml"


class _Section(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class GeneralConfig(_Section):
    similarity_measure: str = Field("cosine", alias="SIMILARITY_MEASURE")
    keep_alive: str = Field("5m", alias="KEEP_ALIVE")


class CerebrasConfig(_Section):
    api_key: str = Field("", alias="API_KEY")


class DeepResearchConfig(_Section):
    api_key: str = Field("", alias="API_KEY")
    daily_limit: int = Field(1, ge=0, alias="DAILY_LIMIT")


class ModelsConfig(_Section):
    cerebras: CerebrasConfig = Field(default_factory=CerebrasConfig, alias="CEREBRAS")
    deep_research: DeepResearchConfig = Field(
        default_factory=DeepResearchConfig, alias="DEEP_RESEARCH"
    )


class ApiEndpointsConfig(_Section):
    searxng: str = Field("", alias="SEARXNG")


class AppInfoConfig(_Section):
    creator: str = Field("InsightFlow", alias="CREATOR")
    version: str = Field("1.0.0", alias="VERSION")


class AppConfig(_Section):
    """Validated view of ``config.toml``.

    Attributes:
        general: Retrieval tuning knobs.
        models: API keys and limits per model provider.
        api_endpoints: External service URLs (SearxNG).
        app: Product metadata shown in the UI.
    """

    general: GeneralConfig = Field(default_factory=GeneralConfig, alias="GENERAL")
    models: ModelsConfig = Field(default_factory=ModelsConfig, alias="MODELS")
    api_endpoints: ApiEndpointsConfig = Field(
        default_factory=ApiEndpointsConfig, alias="API_ENDPOINTS"
    )
    app: AppInfoConfig = Field(default_factory=AppInfoConfig, alias="APP")


def get_config_path() -> Path:
    """Return the config file location (``CONFIG_PATH`` or ./config.toml)."""
    return Path(os.getenv("CONFIG_PATH") or Path.cwd() / CONFIG_FILE_NAME)


def _read_raw(path: Path) -> dict[str, Any]:
    if not path.exists():
        logger.warning(f"Config file not found at {path}")
        return {}
    try:
        return toml.loads(path.read_text(encoding="utf-8"))
    except (OSError, toml.TomlDecodeError) as e:
        logger.error(f"Error loading config: {e}")
        return {}


def load_config(path: Path | None = None) -> AppConfig:
    """Load and validate the configuration file.

    Args:
        path: Explicit file location. Defaults to ``get_config_path()``.

    Returns:
        Parsed configuration, or defaults when the file is missing/invalid.
    """
    raw = _read_raw(path or get_config_path())
    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        logger.error(f"Invalid config values, using defaults: {e}")
        return AppConfig()


def get_similarity_measure(config: AppConfig | None = None) -> str:
    config = config or load_config()
    return config.general.similarity_measure or "cosine"


def get_keep_alive(config: AppConfig | None = None) -> str:
    config = config or load_config()
    return config.general.keep_alive or "5m"


def get_creator(config: AppConfig | None = None) -> str:
    config = config or load_config()
    return config.app.creator


def get_version(config: AppConfig | None = None) -> str:
    config = config or load_config()
    return config.app.version or "1.0.0"


def get_cerebras_api_key(config: AppConfig | None = None) -> str:
    env_key = os.getenv("CEREBRAS_API_KEY", "").strip()
    if env_key:
        return env_key
    config = config or load_config()
    return config.models.cerebras.api_key.strip()


def get_deep_research_api_key(config: AppConfig | None = None) -> str:
    env_key = os.getenv("DEEP_RESEARCH_API_KEY", "").strip()
    if env_key:
        return env_key
    config = config or load_config()
    return config.models.deep_research.api_key.strip()


def get_deep_research_daily_limit(config: AppConfig | None = None) -> int:
    config = config or load_config()
    return config.models.deep_research.daily_limit


def get_searxng_api_endpoint(config: AppConfig | None = None) -> str | None:
    """Resolve the SearxNG base URL.

    ``SEARXNG_API_URL`` takes precedence over the config file.

    Returns:
        Base URL without trailing slash, or None when not configured.
    """
    env_url = os.getenv("SEARXNG_API_URL", "").strip()
    if env_url:
        return env_url.rstrip("/")

    config = config or load_config()
    if config.api_endpoints.searxng.strip():
        return config.api_endpoints.searxng.strip().rstrip("/")

    logger.warning("SearxNG API endpoint not configured in environment or config file")
    return None


def merge_configs(current: Any, update: Any) -> Any:
    """Deep-merge ``update`` into ``current`` without mutating either.

    Nested mappings merge key by key (a mapping replaces a scalar), ``None``
    leaves the current value in place and any other value replaces it.
    Sections that would only hold ``None`` values are not created.
    """
    if update is None:
        return current
    if not isinstance(current, dict) or not isinstance(update, dict):
        return update

    result = dict(current)
    for key, value in update.items():
        if value is None:
            continue
        if isinstance(value, dict):
            existing = result.get(key)
            merged = merge_configs(existing if isinstance(existing, dict) else {}, value)
            # No empty sections for updates that only carried None values
            if merged or key in result:
                result[key] = merged
        else:
            result[key] = value
    return result


def update_config(update: dict[str, Any], path: Path | None = None) -> AppConfig:
    """Merge a partial update into the config file and persist it.

    Args:
        update: Partial mapping using the file's section/key names.
        path: Explicit file location. Defaults to ``get_config_path()``.

    Returns:
        The configuration as validated after the write.

    Raises:
        ValidationError: If the merged configuration is invalid.
    """
    path = path or get_config_path()
    merged = merge_configs(_read_raw(path), update)

    # Validate before writing
    validated = AppConfig.model_validate(merged)
    path.write_text(toml.dumps(merged), encoding="utf-8")
    logger.info(f"Updated config file at {path}")
    return validated
