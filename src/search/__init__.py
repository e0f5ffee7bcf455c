"""Web search with graceful degradation.

Responsibilities:
    - SearxNG JSON API queries with engine/category options
    - DuckDuckGo HTML scraping when SearxNG is down or unconfigured
    - Canned topic results when scraping fails too
    - Page text extraction for deeper answers
    - Backend health reporting for the UI
"""

from src.search.results import SearchBackend, SearchResult, SearchResults
from src.search.scraper import ScrapeError, fetch_page_text, scrape_search_results
from src.search.searxng import SearxngClient, SearxngSearchOptions, search_searxng
from src.search.status import SearchStatus, SearchStatusReport, check_search_status

__all__ = [
    "ScrapeError",
    "SearchBackend",
    "SearchResult",
    "SearchResults",
    "SearchStatus",
    "SearchStatusReport",
    "SearxngClient",
    "SearxngSearchOptions",
    "check_search_status",
    "fetch_page_text",
    "scrape_search_results",
    "search_searxng",
]
