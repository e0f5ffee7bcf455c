"""InsightFlow - search-grounded AI chat.

Combines FastAPI for HTTP streaming, Agno for model access, SearxNG (with
a scraping fallback) for web search, NiceGUI for the chat interface, and
Pydantic for data validation.

Components:
    - api: HTTP endpoints and streaming responses
    - agent: Model providers and the search-and-answer pipeline
    - search: SearxNG client, scraping fallback and status probe
    - config: TOML configuration
    - parsing: Document loaders for uploads
    - cache: Short-lived upload storage
    - ui: Web interface for chat interactions
    - models: Request/response schemas
"""

__version__ = "0.1.0"
