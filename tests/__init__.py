"""Test package for InsightFlow.

Unit tests cover isolated logic; integration tests drive the FastAPI app
end to end through httpx's ASGI transport.

Structure:
    - unit/: Individual function and class tests
    - integration/: API workflow tests

Model providers and web search are replaced with fakes (see conftest.py),
so the suite runs offline. Leverages pytest with pytest-check for soft
assertions.
"""
