"""Document loaders for chat uploads.

Extracts text and metadata from PDF (pypdf), DOCX (python-docx) and plain
text files, with size and format validation.
"""

import io
import logging
from pathlib import PurePath

from docx import Document as open_docx
from pydantic import BaseModel, Field
from pypdf import PdfReader
from pypdf.errors import PdfReadError

logger = logging.getLogger(__name__)

# Constants
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
PDF_MAGIC_BYTES = b"%PDF"
ZIP_MAGIC_BYTES = b"PK\x03\x04"
SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt", ".md")


class DocumentContent(BaseModel):
    """Extracted content from an uploaded file.

    Attributes:
        filename: Original file name.
        text: Combined text content.
        pages: Page count for paged formats, 1 otherwise.
        metadata: Document metadata (title, author, etc.).
    """

    filename: str
    text: str
    pages: int = Field(ge=0)
    metadata: dict[str, str] = Field(default_factory=dict)


class DocumentLoadError(Exception):
    """Raised when a document cannot be loaded."""

    pass


def get_extension(filename: str) -> str:
    return PurePath(filename).suffix.lower()


def _validate_size(file_content: bytes) -> None:
    if not file_content:
        raise DocumentLoadError("Empty file provided")

    if len(file_content) > MAX_FILE_SIZE:
        size_mb = len(file_content) / (1024 * 1024)
        raise DocumentLoadError(f"File size ({size_mb:.1f}MB) exceeds maximum allowed (10MB)")


def _pdf_metadata(reader: PdfReader) -> dict[str, str]:
    metadata: dict[str, str] = {}
    try:
        if reader.metadata:
            for field, key in (
                ("/Title", "title"),
                ("/Author", "author"),
                ("/Subject", "subject"),
                ("/Creator", "creator"),
                ("/Producer", "producer"),
            ):
                value = reader.metadata.get(field)
                if value:
                    metadata[key] = str(value)
    except Exception as e:
        logger.warning(f"Failed to extract some metadata: {e}")
    return metadata


def load_pdf(file_content: bytes, filename: str = "document.pdf") -> DocumentContent:
    """Extract text from a PDF.

    Raises:
        DocumentLoadError: If the file is empty, too large, not a PDF or corrupt.
    """
    _validate_size(file_content)
    if not file_content.lstrip()[:10].startswith(PDF_MAGIC_BYTES):
        raise DocumentLoadError("Invalid PDF: file does not start with PDF header")

    try:
        reader = PdfReader(io.BytesIO(file_content))
        pages = len(reader.pages)
    except PdfReadError as e:
        raise DocumentLoadError(f"Corrupt or invalid PDF: {e}") from e
    except Exception as e:
        raise DocumentLoadError(f"Failed to read PDF: {e}") from e

    if pages == 0:
        raise DocumentLoadError("PDF contains no pages")

    text_parts: list[str] = []
    for i, page in enumerate(reader.pages):
        try:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)
        except Exception as e:
            logger.warning(f"Failed to extract text from page {i + 1}: {e}")

    text = "\n\n".join(text_parts)
    if not text.strip():
        logger.warning("PDF contains no extractable text (may be scanned/image-based)")

    return DocumentContent(
        filename=filename,
        text=text,
        pages=pages,
        metadata=_pdf_metadata(reader),
    )


def load_docx(file_content: bytes, filename: str = "document.docx") -> DocumentContent:
    """Extract paragraph text from a DOCX file.

    Raises:
        DocumentLoadError: If the file is empty, too large or not a DOCX archive.
    """
    _validate_size(file_content)
    if not file_content.startswith(ZIP_MAGIC_BYTES):
        raise DocumentLoadError("Invalid DOCX: file is not a Word document archive")

    try:
        document = open_docx(io.BytesIO(file_content))
    except Exception as e:
        raise DocumentLoadError(f"Failed to read DOCX: {e}") from e

    text = "\n".join(p.text for p in document.paragraphs if p.text.strip())

    metadata: dict[str, str] = {}
    props = document.core_properties
    if props.title:
        metadata["title"] = props.title
    if props.author:
        metadata["author"] = props.author

    return DocumentContent(filename=filename, text=text, pages=1, metadata=metadata)


def load_text(file_content: bytes, filename: str = "document.txt") -> DocumentContent:
    """Decode a UTF-8 text or markdown file.

    Raises:
        DocumentLoadError: If the file is empty, too large or not UTF-8.
    """
    _validate_size(file_content)
    try:
        text = file_content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DocumentLoadError(f"Text file is not valid UTF-8: {e}") from e

    return DocumentContent(filename=filename, text=text, pages=1)


def load_document(filename: str, file_content: bytes) -> DocumentContent:
    """Load any supported upload, dispatching on the file extension.

    Raises:
        DocumentLoadError: If the extension is unsupported or loading fails.
    """
    extension = get_extension(filename)
    if extension == ".pdf":
        return load_pdf(file_content, filename)
    if extension == ".docx":
        return load_docx(file_content, filename)
    if extension in (".txt", ".md"):
        return load_text(file_content, filename)

    supported = ", ".join(SUPPORTED_EXTENSIONS)
    raise DocumentLoadError(f"Unsupported file type '{extension}'. Supported: {supported}")
