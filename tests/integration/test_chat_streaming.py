"""Integration tests for the SSE chat endpoint.

Runs the real FastAPI app through httpx's ASGITransport. Model and search
dependencies are replaced by the conftest fakes, so the tests check the
protocol and request handling without network access.
"""

import json
from typing import Any

import httpx
import pytest
import pytest_check as check
from httpx import AsyncClient

from src.cache import DocumentCache
from src.parsing import DocumentContent
from tests.conftest import FakeLLM, FakeSearch


def chat_payload(content: str = "What is asyncio?", **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "message": {"messageId": "human-1", "chatId": "chat-1", "content": content},
        "focusMode": "webSearch",
        "optimizationMode": "balanced",
        "history": [],
        "chatModel": {"provider": "cerebras", "name": "llama-3.3-70b"},
        "embeddingModel": {"provider": "local", "name": "none"},
    }
    payload.update(overrides)
    return payload


async def read_events(client: AsyncClient, payload: dict[str, Any]) -> list[dict[str, Any]]:
    events = []
    async with client.stream("POST", "/api/chat", json=payload) as response:
        assert response.status_code == 200
        async for line in response.aiter_lines():
            if line.startswith("data: "):
                events.append(json.loads(line.removeprefix("data: ")))
    return events


class TestStreamingEndpoint:
    """Integration tests for POST /api/chat."""

    async def test_stream_returns_sse_content_type(self, async_client: AsyncClient) -> None:
        async with async_client.stream("POST", "/api/chat", json=chat_payload()) as response:
            assert response.status_code == 200
            assert "text/event-stream" in response.headers["content-type"]
            assert response.headers["cache-control"] == "no-cache, no-transform"

    async def test_event_order(self, async_client: AsyncClient) -> None:
        """Sources first, then tokens, then messageEnd."""
        events = await read_events(async_client, chat_payload())

        check.equal(
            [e["type"] for e in events], ["sources", "message", "message", "messageEnd"]
        )
        check.equal("".join(e["data"] for e in events if e["type"] == "message"), "Hello world")
        check.equal(len({e["messageId"] for e in events}), 1)
        check.equal(events[0]["data"][0]["title"], "Python asyncio docs")

    async def test_ai_message_id_differs_from_human_id(self, async_client: AsyncClient) -> None:
        events = await read_events(async_client, chat_payload())

        assert events[-1]["messageId"] != "human-1"

    async def test_history_reaches_prompt(
        self, async_client: AsyncClient, fake_llm: FakeLLM
    ) -> None:
        await read_events(
            async_client,
            chat_payload(history=[["human", "Tell me about Python"], ["assistant", "Sure."]]),
        )

        check.is_in("User: Tell me about Python", fake_llm.answer_prompt)
        check.is_in("Assistant: Sure.", fake_llm.answer_prompt)

    async def test_focus_mode_engines_reach_search(
        self, async_client: AsyncClient, fake_search: FakeSearch
    ) -> None:
        await read_events(async_client, chat_payload(focusMode="youtubeSearch"))

        assert fake_search.calls[0][1].engines == ["youtube"]

    @pytest.mark.parametrize(
        "embedding_model",
        [{"provider": "openai", "name": "text-embedding-3-small"}, None],
    )
    async def test_unresolvable_embedding_model_warns_and_streams(
        self,
        async_client: AsyncClient,
        caplog: pytest.LogCaptureFixture,
        embedding_model: dict[str, str] | None,
    ) -> None:
        with caplog.at_level("WARNING", logger="src.api.chat"):
            events = await read_events(
                async_client, chat_payload(embeddingModel=embedding_model)
            )

        check.equal(events[-1]["type"], "messageEnd")
        check.is_true(
            any("proceeding with chat only" in r.getMessage() for r in caplog.records)
        )

    async def test_default_model_when_none_selected(self, async_client: AsyncClient) -> None:
        events = await read_events(async_client, chat_payload(chatModel=None))

        assert events[-1]["type"] == "messageEnd"

    async def test_uploaded_files_become_sources(
        self, async_client: AsyncClient, document_cache: DocumentCache
    ) -> None:
        document_cache.set(
            "doc-1", DocumentContent(filename="notes.md", text="# Notes\nBody", pages=1)
        )

        events = await read_events(
            async_client,
            chat_payload(focusMode="writingAssistant", files=["doc-1", "expired-id"]),
        )

        sources = events[0]["data"]
        check.equal(events[0]["type"], "sources")
        check.equal([s["title"] for s in sources], ["notes.md"])
        check.equal(sources[0]["kind"], "document")


class TestStreamingErrorHandling:
    """Tests for error scenarios in the chat endpoint."""

    async def test_empty_message_returns_400(self, async_client: AsyncClient) -> None:
        response = await async_client.post("/api/chat", json=chat_payload("   "))

        assert response.status_code == 400
        assert response.json()["detail"] == "Please provide a message to process"

    async def test_missing_message_returns_422(self, async_client: AsyncClient) -> None:
        response = await async_client.post("/api/chat", json={"focusMode": "webSearch"})

        assert response.status_code == 422

    async def test_invalid_json_returns_422(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/api/chat",
            content="not valid json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422

    @pytest.mark.parametrize("focus_mode", ["imageSearch", None])
    async def test_invalid_focus_mode_returns_400(
        self, async_client: AsyncClient, focus_mode: str | None
    ) -> None:
        response = await async_client.post(
            "/api/chat", json=chat_payload(focusMode=focus_mode)
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid focus mode"

    async def test_invalid_chat_model_returns_400(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/api/chat", json=chat_payload(chatModel={"provider": "openai", "name": "gpt-4o"})
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid chat model"

    async def test_daily_limit_returns_429(self, async_client: AsyncClient) -> None:
        payload = chat_payload(chatModel={"provider": "deep_research", "name": "gemini-1.5-pro"})

        await read_events(async_client, payload)
        response = await async_client.post("/api/chat", json=payload)

        assert response.status_code == 429
        assert "Daily limit reached" in response.json()["detail"]

    async def test_connection_error_mid_stream(
        self, async_client: AsyncClient, fake_llm: FakeLLM
    ) -> None:
        fake_llm.error = httpx.ConnectError("connect ECONNREFUSED 127.0.0.1:8080")

        events = await read_events(async_client, chat_payload())

        check.equal(events[-1]["type"], "error")
        check.is_true(events[-1]["data"].startswith("Could not connect to search service"))
        check.is_not_in("messageEnd", [e["type"] for e in events])

    async def test_unexpected_error_mid_stream(
        self, async_client: AsyncClient, fake_llm: FakeLLM
    ) -> None:
        fake_llm.error = RuntimeError("boom")

        events = await read_events(async_client, chat_payload())

        assert events[-1] == {
            "type": "error",
            "data": "An error occurred while processing chat request",
        }

    async def test_wrong_http_method_returns_405(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/api/chat")

        assert response.status_code == 405

    async def test_cors_headers_present(self, async_client: AsyncClient) -> None:
        async with async_client.stream(
            "POST",
            "/api/chat",
            json=chat_payload(),
            headers={"Origin": "http://localhost:3000"},
        ) as response:
            assert "access-control-allow-origin" in response.headers
