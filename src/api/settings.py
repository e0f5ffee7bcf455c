"""Model listing and configuration endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError

from src.agent.providers import get_available_chat_model_providers
from src.api.dependencies import get_app_config
from src.config import (
    AppConfig,
    get_cerebras_api_key,
    get_deep_research_api_key,
    get_searxng_api_endpoint,
    update_config,
)
from src.models.schemas import ChatModelInfo, ConfigUpdate, ConfigView, ModelsResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["settings"])


def _config_view(config: AppConfig) -> ConfigView:
    return ConfigView(
        searxng_url=get_searxng_api_endpoint(config),
        cerebras_api_key_set=bool(get_cerebras_api_key(config)),
        deep_research_api_key_set=bool(get_deep_research_api_key(config)),
        deep_research_daily_limit=config.models.deep_research.daily_limit,
        similarity_measure=config.general.similarity_measure,
        keep_alive=config.general.keep_alive,
        creator=config.app.creator,
        version=config.app.version,
    )


@router.get("/models", response_model=ModelsResponse, response_model_by_alias=True)
async def list_models(config: AppConfig = Depends(get_app_config)) -> ModelsResponse:
    """List selectable chat models grouped by provider."""
    providers = get_available_chat_model_providers(config)
    return ModelsResponse(
        chat_model_providers={
            provider: [
                ChatModelInfo(
                    name=spec.key,
                    display_name=spec.display_name,
                    description=spec.description,
                )
                for spec in models.values()
            ]
            for provider, models in providers.items()
        }
    )


@router.get("/config", response_model=ConfigView, response_model_by_alias=True)
async def get_config(config: AppConfig = Depends(get_app_config)) -> ConfigView:
    """Current settings with API keys reduced to set/unset flags."""
    return _config_view(config)


@router.post("/config", response_model=ConfigView, response_model_by_alias=True)
async def post_config(update: ConfigUpdate) -> ConfigView:
    """Merge a partial settings update into ``config.toml``.

    Raises:
        400: The merged configuration is invalid.
        500: The file could not be written.
    """
    try:
        config = update_config(update.to_toml_update())
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid configuration: {e.errors()[0]['msg']}",
        ) from e
    except OSError as e:
        logger.error(f"Failed to write config file: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to write configuration",
        ) from e
    return _config_view(config)
