"""SearxNG search with scraping and static fallbacks.

``search_searxng`` is the single entry point used by the answer pipeline.
It tries the configured SearxNG instance, then the DuckDuckGo scraper, then
canned topic results, and reports which tier answered. Backend failures are
logged and absorbed; callers always get a ``SearchResults``.
"""

import logging

import httpx
from pydantic import BaseModel

from src.config import AppConfig, get_searxng_api_endpoint
from src.search.results import SearchBackend, SearchResult, SearchResults
from src.search.scraper import (
    ScrapeError,
    generate_fallback_results,
    generate_fallback_suggestions,
    scrape_search_results,
)

logger = logging.getLogger(__name__)

SEARXNG_TIMEOUT = 5.0


class SearxngSearchOptions(BaseModel):
    """Optional SearxNG query parameters.

    Attributes:
        categories: Search categories (general, images, videos, news, ...).
        engines: Specific engines to query.
        language: Result language code.
        pageno: Result page number.
    """

    categories: list[str] | None = None
    engines: list[str] | None = None
    language: str | None = None
    pageno: int | None = None

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        for key, value in self.model_dump(exclude_none=True).items():
            if isinstance(value, list):
                if value:
                    params[key] = ",".join(value)
            else:
                params[key] = str(value)
        return params


class SearxngClient:
    """Thin async client for a SearxNG instance's JSON API."""

    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the SearxNG instance.
            client: Optional shared HTTP client.
        """
        self.base_url = base_url.rstrip("/")
        self.search_endpoint = f"{self.base_url}/search"
        self._client = client

    async def _get(self, url: str, params: dict[str, str], timeout: float) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, params=params, timeout=timeout)
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.get(url, params=params)

    async def search(
        self,
        query: str,
        opts: SearxngSearchOptions | None = None,
    ) -> SearchResults:
        """Run one search.

        Raises:
            httpx.HTTPError: On connection failures, timeouts and error statuses.
            ValueError: If the response body is not the expected JSON.
        """
        params = {"format": "json", "q": query}
        if opts:
            params.update(opts.to_params())

        response = await self._get(self.search_endpoint, params, SEARXNG_TIMEOUT)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object from SearxNG, got {type(data).__name__}")

        return SearchResults(
            results=[SearchResult.model_validate(r) for r in data.get("results") or []],
            suggestions=data.get("suggestions") or [],
            backend=SearchBackend.SEARXNG,
        )


async def search_searxng(
    query: str,
    opts: SearxngSearchOptions | None = None,
    *,
    config: AppConfig | None = None,
    client: httpx.AsyncClient | None = None,
) -> SearchResults:
    """Search the web, degrading through the fallback tiers.

    Args:
        query: Search query.
        opts: Optional SearxNG parameters (ignored by the fallbacks).
        config: Configuration to read the endpoint from. Loads if omitted.
        client: Optional shared HTTP client.

    Returns:
        Results from the first tier that answered.
    """
    endpoint = get_searxng_api_endpoint(config)

    if endpoint:
        try:
            return await SearxngClient(endpoint, client).search(query, opts)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.warning(f"Error connecting to SearxNG at {endpoint}: {e}")
    else:
        logger.warning("SearxNG API endpoint not configured")

    logger.info("Falling back to web scraper for search results...")
    try:
        return await scrape_search_results(query, client=client)
    except ScrapeError as e:
        logger.error(f"Web scraping fallback also failed: {e}")

    return SearchResults(
        results=generate_fallback_results(query),
        suggestions=generate_fallback_suggestions(query),
        backend=SearchBackend.STATIC,
    )
