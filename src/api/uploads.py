"""Document upload endpoint for grounding chat answers.

Handles file upload, validation, text extraction and caching. The returned
``fileId`` is passed back in chat requests' ``files`` list.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status

from src.cache import DocumentCache, get_document_cache
from src.models.schemas import UploadResponse
from src.parsing import (
    MAX_FILE_SIZE,
    SUPPORTED_EXTENSIONS,
    DocumentLoadError,
    get_extension,
    load_document,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/uploads", tags=["uploads"])

MAX_UPLOAD_SIZE = MAX_FILE_SIZE


def _validate_file_extension(filename: str | None) -> str:
    """Validate that the file has a supported extension.

    Raises:
        HTTPException: 400 if the name is missing or the extension unsupported.
    """
    if not filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Filename is required",
        )

    if get_extension(filename) not in SUPPORTED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type. Accepted: {', '.join(SUPPORTED_EXTENSIONS)}",
        )

    return filename


async def _read_and_validate_size(file: UploadFile) -> bytes:
    """Read file content and validate size.

    Raises:
        HTTPException: 413 if file exceeds size limit.
    """
    content = await file.read()

    if len(content) > MAX_UPLOAD_SIZE:
        size_mb = len(content) / (1024 * 1024)
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=f"File size ({size_mb:.1f}MB) exceeds maximum allowed (10MB)",
        )

    return content


@router.post("", response_model=UploadResponse, response_model_by_alias=True)
async def upload_document(
    file: UploadFile,
    cache: DocumentCache = Depends(get_document_cache),
) -> UploadResponse:
    """Upload a document for use as chat context.

    Args:
        file: The uploaded file (multipart/form-data).

    Returns:
        UploadResponse with the file id, page count and text length.

    Raises:
        400: Unsupported, empty or corrupt file.
        413: File exceeds 10MB limit.
    """
    filename = _validate_file_extension(file.filename)
    content = await _read_and_validate_size(file)

    try:
        document = load_document(filename, content)
    except DocumentLoadError as e:
        logger.warning(f"Document load error for {filename}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    file_id = uuid.uuid4().hex
    cache.set(file_id, document)
    logger.info(f"Cached upload {filename} as {file_id} ({document.pages} pages)")

    return UploadResponse(
        file_id=file_id,
        filename=filename,
        pages=document.pages,
        characters=len(document.text),
        success=True,
    )
