"""Unit tests for UI helpers: markdown rendering and the chat stream consumer."""

import json

import httpx
import pytest_check as check

from src.agent.search_agent import Source
from src.ui.chat_page import build_chat_payload, stream_chat_response
from src.ui.formatting import link_citations, markdown_to_html, plain_text_to_html
from src.ui.history import ChatHistory

SOURCES = [
    {"title": "One", "url": "https://one.test/"},
    {"title": "Two", "url": "https://two.test/?a=1&b=2"},
]


def sse(*events: dict) -> str:
    return "".join(f"data: {json.dumps(e)}\n\n" for e in events)


class Recorder:
    def __init__(self) -> None:
        self.chunks: list[str] = []
        self.sources: list[dict] = []
        self.errors: list[str] = []
        self.completed = False

    def on_chunk(self, text: str) -> None:
        self.chunks.append(text)

    def on_sources(self, items: list[dict]) -> None:
        self.sources.extend(items)

    def on_complete(self) -> None:
        self.completed = True

    def on_error(self, error: str) -> None:
        self.errors.append(error)


async def consume(handler, payload: dict | None = None) -> Recorder:
    recorder = Recorder()
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="http://api.test"
    ) as client:
        await stream_chat_response(
            payload or {},
            recorder.on_chunk,
            recorder.on_sources,
            recorder.on_complete,
            recorder.on_error,
            client=client,
        )
    return recorder


class TestMarkdown:
    """Tests for markdown to HTML conversion."""

    def test_escapes_html(self) -> None:
        assert "&lt;script&gt;" in markdown_to_html("<script>alert(1)</script>")

    def test_basic_formatting(self) -> None:
        html = markdown_to_html("**bold** and *it* and `code`\n- a\n- b")

        check.is_in("<strong>bold</strong>", html)
        check.is_in("<em>it</em>", html)
        check.is_in("<code", html)
        check.is_in("<li>a</li>", html)

    def test_citations_link_to_sources(self) -> None:
        html = markdown_to_html("Fact [1][2] and unknown [3].", SOURCES)

        check.is_in('href="https://one.test/"', html)
        check.is_in('href="https://two.test/?a=1&amp;b=2"', html)
        check.is_in("[3]", html)
        check.is_not_in("<sup>[3]</sup>", html)

    def test_citations_untouched_without_sources(self) -> None:
        assert link_citations("see [1]", []) == "see [1]"

    def test_citation_of_uploaded_document_is_unlinked(self) -> None:
        sources = [
            Source(title="notes.md", content="Meeting notes", kind="document").model_dump(),
            SOURCES[0],
        ]

        html = markdown_to_html("Per the notes [1] and the web [2].", sources)

        check.is_in("<sup>[1]</sup>", html)
        check.is_not_in('href="None"', html)
        check.is_in('href="https://one.test/"', html)

    def test_plain_text_escapes_ampersands_and_tags(self) -> None:
        html = plain_text_to_html("Fish & <b>chips</b>\nplease")

        assert html == "Fish &amp; &lt;b&gt;chips&lt;/b&gt;<br>please"


class TestChatPayload:
    """Tests for the request body sent to /api/chat."""

    def test_history_uses_human_role(self) -> None:
        history = ChatHistory()
        history.add_message("user", "Q1")
        history.add_message("assistant", "A1")

        payload = build_chat_payload(
            "Q2",
            history.current_session_id,
            history.current_session.messages,
            "webSearch",
            "speed",
            ["file1"],
            {"provider": "cerebras", "name": "llama-3.3-70b"},
        )

        check.equal(payload["message"], {"chatId": history.current_session_id, "content": "Q2"})
        check.equal(payload["history"], [["human", "Q1"], ["assistant", "A1"]])
        check.equal(payload["focusMode"], "webSearch")
        check.equal(payload["optimizationMode"], "speed")
        check.equal(payload["files"], ["file1"])


class TestStreamConsumer:
    """Tests for parsing the chat SSE stream."""

    async def test_dispatches_events(self) -> None:
        body = sse(
            {"type": "sources", "data": SOURCES, "messageId": "x"},
            {"type": "message", "data": "Hel", "messageId": "x"},
            {"type": "message", "data": "lo", "messageId": "x"},
            {"type": "messageEnd", "messageId": "x"},
        )

        recorder = await consume(
            lambda r: httpx.Response(
                200, text=body, headers={"content-type": "text/event-stream"}
            )
        )

        check.equal(recorder.sources, SOURCES)
        check.equal("".join(recorder.chunks), "Hello")
        check.is_true(recorder.completed)
        check.equal(recorder.errors, [])

    async def test_error_event_stops_stream(self) -> None:
        body = sse(
            {"type": "message", "data": "partial"},
            {"type": "error", "data": "Could not connect to search service."},
            {"type": "messageEnd"},
        )

        recorder = await consume(lambda r: httpx.Response(200, text=body))

        check.equal(recorder.errors, ["Could not connect to search service."])
        check.is_false(recorder.completed)

    async def test_http_error_reports_detail(self) -> None:
        recorder = await consume(
            lambda r: httpx.Response(400, json={"detail": "Invalid focus mode"})
        )

        assert recorder.errors == ["Invalid focus mode"]

    async def test_connection_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        recorder = await consume(handler)

        assert recorder.errors[0].startswith("Connection failed")

    async def test_malformed_event_reports_error(self) -> None:
        body = sse({"type": "message", "data": "partial"}) + "data: {not json\n\n"

        recorder = await consume(lambda r: httpx.Response(200, text=body))

        check.equal(recorder.chunks, ["partial"])
        check.equal(len(recorder.errors), 1)
        check.is_false(recorder.completed)
