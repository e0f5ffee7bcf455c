"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - isolated_env: Points CONFIG_PATH at a temp file and clears env overrides
    - app_config: Configuration with both model providers enabled
    - fake_llm: Scripted stand-in for AgentService
    - fake_search: Recording stand-in for search_searxng
    - document_cache / usage_tracker: Fresh per-test state
    - async_client: HTTPX client for API testing with dependencies overridden

No fixture touches the network or a real model provider.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from src.agent.providers import UsageTracker, get_usage_tracker
from src.api import app
from src.api.dependencies import get_app_config, get_llm_factory, get_search_fn
from src.cache import DocumentCache, get_document_cache
from src.config import AppConfig
from src.search import SearchBackend, SearchResult, SearchResults, SearxngSearchOptions

ENV_OVERRIDES = (
    "CEREBRAS_API_KEY",
    "DEEP_RESEARCH_API_KEY",
    "SEARXNG_API_URL",
    "LLM_TEMPERATURE",
    "LLM_MAX_TOKENS",
)


class FakeLLM:
    """Scripted chat model.

    Attributes:
        rephrased: Text returned by ``get_response`` (the rephrase step).
        chunks: Text chunks yielded by ``stream_response``.
        error: Raised from ``stream_response`` after the chunks, when set.
        calls: ``(method, prompt, instructions)`` for every call.
    """

    def __init__(
        self,
        rephrased: str = "rephrased query",
        chunks: tuple[str, ...] = ("Hello", " world"),
        error: Exception | None = None,
    ) -> None:
        self.rephrased = rephrased
        self.chunks = chunks
        self.error = error
        self.calls: list[tuple[str, str, list[str]]] = []

    async def get_response(self, prompt: str, instructions: list[str]) -> str:
        self.calls.append(("get_response", prompt, instructions))
        return self.rephrased

    async def stream_response(self, prompt: str, instructions: list[str]):
        self.calls.append(("stream_response", prompt, instructions))
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    @property
    def answer_prompt(self) -> str:
        return next(p for method, p, _ in self.calls if method == "stream_response")

    @property
    def answer_instructions(self) -> list[str]:
        return next(i for method, _, i in self.calls if method == "stream_response")


class FakeSearch:
    """Records queries and returns canned results."""

    def __init__(self, results: SearchResults | None = None) -> None:
        self.results = results or SearchResults(
            results=[
                SearchResult(
                    title="Python asyncio docs",
                    url="https://docs.python.org/3/library/asyncio.html",
                    content="asyncio is a library to write concurrent code.",
                ),
                SearchResult(
                    title="Real Python: Async IO",
                    url="https://realpython.com/async-io-python/",
                    content="A walkthrough of async IO in Python.",
                ),
            ],
            suggestions=["asyncio tutorial"],
            backend=SearchBackend.SEARXNG,
        )
        self.calls: list[tuple[str, SearxngSearchOptions | None]] = []

    async def __call__(
        self, query: str, opts: SearxngSearchOptions | None = None
    ) -> SearchResults:
        self.calls.append((query, opts))
        return self.results


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Keep tests independent of the developer's config file and shell.

    Returns:
        Path that CONFIG_PATH now points to (not created).
    """
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    config_path = tmp_path / "config.toml"
    monkeypatch.setenv("CONFIG_PATH", str(config_path))
    return config_path


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig.model_validate(
        {
            "MODELS": {
                "CEREBRAS": {"API_KEY": "test-cerebras-key"},
                "DEEP_RESEARCH": {"API_KEY": "test-deep-key", "DAILY_LIMIT": 1},
            },
            "API_ENDPOINTS": {"SEARXNG": "http://searxng.test"},
        }
    )


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def fake_search() -> FakeSearch:
    return FakeSearch()


@pytest.fixture
def document_cache() -> DocumentCache:
    return DocumentCache()


@pytest.fixture
def usage_tracker() -> UsageTracker:
    return UsageTracker()


@pytest.fixture
async def async_client(
    app_config: AppConfig,
    fake_llm: FakeLLM,
    fake_search: FakeSearch,
    document_cache: DocumentCache,
    usage_tracker: UsageTracker,
) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    app.dependency_overrides[get_app_config] = lambda: app_config
    app.dependency_overrides[get_search_fn] = lambda: fake_search
    app.dependency_overrides[get_llm_factory] = lambda: (lambda spec: fake_llm)
    app.dependency_overrides[get_document_cache] = lambda: document_cache
    app.dependency_overrides[get_usage_tracker] = lambda: usage_tracker

    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
