"""Short-lived server-side storage for uploaded documents."""

from src.cache.document_cache import DocumentCache, get_document_cache

__all__ = ["DocumentCache", "get_document_cache"]
