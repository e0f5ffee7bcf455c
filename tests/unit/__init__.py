"""Unit tests for individual components in isolation.

Ensures fast execution with minimal dependencies.

Coverage:
    - config/: TOML loading, env overrides and partial updates
    - search/: SearxNG client, scraping fallback and status probe
    - agent/: Providers, usage limits and the search-and-answer pipeline
    - parsing/ and cache/: Upload loaders and the TTL cache
    - ui/: Chat history, markdown rendering and stream consumption

HTTP is served by httpx.MockTransport. Leverages pytest-check for multiple
assertions per test.
"""
