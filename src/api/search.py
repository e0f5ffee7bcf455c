"""Search backend status endpoint."""

import logging

from fastapi import APIRouter, Depends

from src.api.dependencies import get_app_config
from src.config import AppConfig
from src.search import SearchStatus, SearchStatusReport, check_search_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/search", tags=["search"])


@router.get("/status", response_model=SearchStatusReport)
async def search_status(config: AppConfig = Depends(get_app_config)) -> SearchStatusReport:
    """Report whether SearxNG is reachable or the scraping fallback is in use."""
    try:
        return await check_search_status(config)
    except Exception as e:
        logger.error(f"Error checking search status: {e}")
        return SearchStatusReport.from_status(
            SearchStatus.FALLBACK,
            "Error checking search status. Using web scraping fallback.",
        )
