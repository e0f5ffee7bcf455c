"""FastAPI endpoints for InsightFlow.

HTTP and streaming routes with async request handling. Chat answers are
streamed as Server-Sent Events.

Endpoints:
    - GET /health: Service health status
    - POST /api/chat: Streamed, source-grounded chat answers
    - GET /api/search/status: SearxNG availability
    - GET /api/models: Selectable chat models
    - GET|POST /api/config: Settings
    - POST /api/uploads: Documents for chat context
    - GET|DELETE /api/chats[/{id}]: History acknowledgements (history lives in the browser)
"""

from src.api.app import app, create_app

__all__ = ["app", "create_app"]
