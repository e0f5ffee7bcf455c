"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Streaming answer display with numbered source citations
    - Focus, optimization and model selectors
    - Document upload for grounding answers
    - Chat history kept in per-browser storage

Contains minimal business logic. Delegates all operations to the API.
"""
