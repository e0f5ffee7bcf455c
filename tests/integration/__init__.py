"""Integration tests for components working together as a system.

Coverage:
    - Streaming chat with the SSE event protocol
    - Document upload feeding chat answers
    - Models, settings, search status and history routes

Requests go through the real FastAPI app; only the model service and the
search function are swapped through dependency overrides.
"""
