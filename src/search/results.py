"""Search result models shared by every search backend."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SearchBackend(str, Enum):
    """Which tier of the fallback chain produced the results."""

    SEARXNG = "searxng"
    SCRAPER = "scraper"
    STATIC = "static"


class SearchResult(BaseModel):
    """A single hit, in SearxNG's JSON field naming.

    Attributes:
        title: Page title.
        url: Target URL.
        content: Snippet text.
    """

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    url: str = ""
    content: str | None = None
    img_src: str | None = None
    thumbnail_src: str | None = None
    thumbnail: str | None = None
    author: str | None = None
    iframe_src: str | None = None


class SearchResults(BaseModel):
    """Results plus related-query suggestions from one search."""

    results: list[SearchResult] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    backend: SearchBackend = SearchBackend.SEARXNG
