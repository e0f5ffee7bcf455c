"""SearxNG availability probe for the UI's search-status notice."""

import logging
from enum import Enum

import httpx
from pydantic import BaseModel

from src.config import AppConfig, get_searxng_api_endpoint

logger = logging.getLogger(__name__)

HEALTH_CHECK_TIMEOUT = 2.0


class SearchStatus(str, Enum):
    AVAILABLE = "available"
    FALLBACK = "fallback"
    UNAVAILABLE = "unavailable"


class SearchStatusReport(BaseModel):
    """Search backend status.

    Attributes:
        status: Overall status.
        message: Human readable explanation.
        available: True when SearxNG answered its health check.
        fallback: True when searches will use the scraping fallback.
    """

    status: SearchStatus
    message: str
    available: bool
    fallback: bool

    @classmethod
    def from_status(cls, status: SearchStatus, message: str) -> "SearchStatusReport":
        return cls(
            status=status,
            message=message,
            available=status == SearchStatus.AVAILABLE,
            fallback=status == SearchStatus.FALLBACK,
        )


async def check_search_status(
    config: AppConfig | None = None,
    client: httpx.AsyncClient | None = None,
) -> SearchStatusReport:
    """Probe ``{endpoint}/healthz``.

    Returns:
        ``available`` on a successful health check, ``fallback`` otherwise.
    """
    endpoint = get_searxng_api_endpoint(config)
    if not endpoint:
        return SearchStatusReport.from_status(
            SearchStatus.FALLBACK,
            "SearxNG URL not configured. Using web scraping fallback.",
        )

    url = f"{endpoint}/healthz"
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=HEALTH_CHECK_TIMEOUT) as own_client:
                response = await own_client.get(url)
        else:
            response = await client.get(url, timeout=HEALTH_CHECK_TIMEOUT)
        response.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(f"SearxNG health check failed: {e}")
        return SearchStatusReport.from_status(
            SearchStatus.FALLBACK,
            "Could not connect to SearxNG. Using web scraping fallback.",
        )

    return SearchStatusReport.from_status(
        SearchStatus.AVAILABLE,
        "SearxNG is available and working properly.",
    )
