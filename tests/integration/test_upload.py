"""Integration tests for the document upload endpoint.

Uploads real in-memory files through the FastAPI app and checks that they
land in the document cache and can ground a chat answer.
"""

import io
import json

import pytest_check as check
from docx import Document
from httpx import AsyncClient
from pypdf import PdfWriter

from src.cache import DocumentCache
from src.models.schemas import UploadResponse
from src.parsing import MAX_FILE_SIZE
from tests.conftest import FakeLLM


def blank_pdf(pages: int = 2) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def small_docx(text: str) -> bytes:
    document = Document()
    document.add_paragraph(text)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class TestDocumentUpload:
    """Integration tests for POST /api/uploads."""

    async def test_upload_text_file(
        self, async_client: AsyncClient, document_cache: DocumentCache
    ) -> None:
        response = await async_client.post(
            "/api/uploads",
            files={"file": ("notes.md", b"# Notes\nUse asyncio.gather.", "text/markdown")},
        )

        assert response.status_code == 200
        body = UploadResponse.model_validate(response.json())
        check.is_true(body.success)
        check.equal(body.filename, "notes.md")
        check.equal(body.pages, 1)
        check.equal(body.characters, len("# Notes\nUse asyncio.gather."))
        check.is_in("fileId", response.json())
        check.equal(document_cache.get(body.file_id).text, "# Notes\nUse asyncio.gather.")

    async def test_upload_pdf_reports_pages(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/api/uploads",
            files={"file": ("slides.pdf", blank_pdf(3), "application/pdf")},
        )

        assert response.status_code == 200
        assert response.json()["pages"] == 3

    async def test_upload_docx(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/api/uploads",
            files={
                "file": (
                    "draft.docx",
                    small_docx("Draft paragraph."),
                    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                )
            },
        )

        assert response.status_code == 200
        assert response.json()["characters"] == len("Draft paragraph.")

    async def test_unsupported_extension_returns_400(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/api/uploads",
            files={"file": ("image.png", b"\x89PNG", "image/png")},
        )

        assert response.status_code == 400
        assert "Unsupported file type" in response.json()["detail"]

    async def test_corrupt_pdf_returns_400(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/api/uploads",
            files={"file": ("fake.pdf", b"this is not a pdf", "application/pdf")},
        )

        assert response.status_code == 400
        assert "Invalid PDF" in response.json()["detail"]

    async def test_empty_file_returns_400(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/api/uploads",
            files={"file": ("empty.txt", b"", "text/plain")},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Empty file provided"

    async def test_oversized_file_returns_413(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/api/uploads",
            files={"file": ("big.txt", b"a" * (MAX_FILE_SIZE + 1), "text/plain")},
        )

        assert response.status_code == 413

    async def test_missing_file_returns_422(self, async_client: AsyncClient) -> None:
        response = await async_client.post("/api/uploads")

        assert response.status_code == 422

    async def test_uploaded_document_grounds_chat(
        self, async_client: AsyncClient, fake_llm: FakeLLM
    ) -> None:
        upload = await async_client.post(
            "/api/uploads",
            files={"file": ("facts.txt", b"The launch date is 12 May.", "text/plain")},
        )
        file_id = upload.json()["fileId"]

        events = []
        async with async_client.stream(
            "POST",
            "/api/chat",
            json={
                "message": {"content": "When is the launch?"},
                "focusMode": "writingAssistant",
                "files": [file_id],
            },
        ) as response:
            async for line in response.aiter_lines():
                if line.startswith("data: "):
                    events.append(json.loads(line.removeprefix("data: ")))

        check.equal(events[0]["type"], "sources")
        check.equal(events[0]["data"][0]["title"], "facts.txt")
        check.is_in("The launch date is 12 May.", fake_llm.answer_prompt)
