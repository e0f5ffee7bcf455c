"""Document loading for chat uploads.

Turns uploaded files into plain text the answer agent can cite.

Responsibilities:
    - PDF text extraction with pypdf
    - DOCX paragraph extraction with python-docx
    - UTF-8 text and markdown decoding
    - Size, header and extension validation
"""

from src.parsing.loaders import (
    MAX_FILE_SIZE,
    SUPPORTED_EXTENSIONS,
    DocumentContent,
    DocumentLoadError,
    get_extension,
    load_document,
)

__all__ = [
    "MAX_FILE_SIZE",
    "SUPPORTED_EXTENSIONS",
    "DocumentContent",
    "DocumentLoadError",
    "get_extension",
    "load_document",
]
