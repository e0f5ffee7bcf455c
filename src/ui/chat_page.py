"""NiceGUI chat interface with SSE streaming support."""

import json
import logging
import os
from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx
from nicegui import app, events, ui

from src.agent.search_agent import FOCUS_MODES, OptimizationMode
from src.ui.formatting import markdown_to_html, plain_text_to_html
from src.ui.history import STORAGE_KEY, ChatHistory, ChatMessage

logger = logging.getLogger(__name__)

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")

FOCUS_LABELS = {
    "webSearch": "All",
    "academicSearch": "Academic",
    "youtubeSearch": "YouTube",
    "redditSearch": "Reddit",
    "wolframAlphaSearch": "Wolfram Alpha",
    "writingAssistant": "Writing",
}

OPTIMIZATION_LABELS = {
    OptimizationMode.SPEED.value: "Speed",
    OptimizationMode.BALANCED.value: "Balanced",
    OptimizationMode.QUALITY.value: "Quality",
}

CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600&display=swap"
      rel="stylesheet">
<link href="https://fonts.googleapis.com/icon?family=Material+Icons" rel="stylesheet">
<style>
    * { font-family: 'Inter', sans-serif; }

    body { background: #f5f5f5; min-height: 100vh; }

    .app-container {
        background: white;
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
        overflow: hidden;
    }

    .header { background: linear-gradient(135deg, #0f766e 0%, #1e3a8a 100%); }

    .message-user {
        background: linear-gradient(135deg, #0f766e 0%, #1e3a8a 100%);
        color: white;
        border-radius: 18px 18px 4px 18px;
    }

    .message-assistant {
        background: #f3f4f6;
        color: #1f2937;
        border-radius: 18px 18px 18px 4px;
    }

    .source-card {
        background: white;
        border: 1px solid #e5e7eb;
        border-radius: 10px;
    }

    .typing-dot {
        width: 8px; height: 8px;
        background: #0f766e;
        border-radius: 50%;
        animation: bounce 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.2s; }
    .typing-dot:nth-child(3) { animation-delay: 0.4s; }

    @keyframes bounce {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }

    .input-box {
        background: #f9fafb;
        border: 1px solid #e5e7eb;
        border-radius: 12px;
    }
    .input-box:focus-within { border-color: #0f766e; }

    .message-assistant pre { margin: 0.5rem 0; }
    .message-assistant code { font-family: 'Menlo', 'Monaco', monospace; }
    .message-assistant a { color: #0f766e; }
    .message-assistant a.citation { text-decoration: none; }
</style>
"""


def build_chat_payload(
    content: str,
    chat_id: str,
    previous: list[ChatMessage],
    focus_mode: str,
    optimization_mode: str,
    files: list[str],
    chat_model: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Request body for ``POST /api/chat``.

    Prior messages are sent as ``[role, text]`` pairs using ``human`` for
    user turns.
    """
    return {
        "message": {"chatId": chat_id, "content": content},
        "focusMode": focus_mode,
        "optimizationMode": optimization_mode,
        "history": [
            ["human" if m.role == "user" else "assistant", m.content] for m in previous
        ],
        "files": files,
        "chatModel": chat_model,
    }


def _error_detail(response: httpx.Response) -> str:
    try:
        return response.json().get("detail", f"HTTP {response.status_code}")
    except (json.JSONDecodeError, AttributeError):
        return f"HTTP {response.status_code}"


async def stream_chat_response(
    payload: dict[str, Any],
    on_chunk: Callable[[str], None],
    on_sources: Callable[[list[dict]], None],
    on_complete: Callable[[], None],
    on_error: Callable[[str], None],
    client: httpx.AsyncClient | None = None,
) -> None:
    """Consume the SSE stream from /api/chat."""
    owns_client = client is None
    client = client or httpx.AsyncClient(base_url=API_BASE_URL, timeout=120.0)
    try:
        async with client.stream(
            "POST",
            "/api/chat",
            json=payload,
            headers={"Accept": "text/event-stream"},
        ) as response:
            if response.is_error:
                await response.aread()
                on_error(_error_detail(response))
                return
            async for line in response.aiter_lines():
                if not line.startswith("data: "):
                    continue
                try:
                    event = json.loads(line[6:])
                except json.JSONDecodeError as e:
                    logger.error(f"Malformed stream event: {e}")
                    on_error("Received a malformed response from the server")
                    return
                event_type = event.get("type")
                if event_type == "message":
                    on_chunk(event.get("data", ""))
                elif event_type == "sources":
                    on_sources(event.get("data") or [])
                elif event_type == "error":
                    on_error(event.get("data", "Unknown error"))
                    return
                elif event_type == "messageEnd":
                    on_complete()
                    return
    except httpx.RequestError as e:
        on_error(f"Connection failed: {e}")
    finally:
        if owns_client:
            await client.aclose()


async def fetch_json(path: str, client: httpx.AsyncClient | None = None) -> dict | None:
    """GET an API resource, returning None when it cannot be fetched."""
    owns_client = client is None
    client = client or httpx.AsyncClient(base_url=API_BASE_URL, timeout=10.0)
    try:
        response = await client.get(path)
        response.raise_for_status()
        return response.json()
    except (httpx.HTTPError, json.JSONDecodeError) as e:
        logger.warning(f"Could not fetch {path}: {e}")
        return None
    finally:
        if owns_client:
            await client.aclose()


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)
    history = ChatHistory.from_dict(app.storage.user.get(STORAGE_KEY))
    state: dict[str, Any] = {
        "streaming": False,
        "focus": "webSearch",
        "optimization": OptimizationMode.BALANCED.value,
        "model": None,
        "files": [],
        "sources": {},
    }

    messages_container: ui.column
    sidebar_list: ui.column
    input_field: ui.textarea
    send_btn: ui.button

    def save_history() -> None:
        app.storage.user[STORAGE_KEY] = history.to_dict()

    def render_sources(sources: list[dict]) -> None:
        with ui.row().classes("w-full gap-2 flex-wrap"):
            for i, source in enumerate(sources, start=1):
                url = source.get("url") or ""
                # Uploaded documents have no URL
                card = ui.link(target=url, new_tab=True) if url else ui.element("div")
                with card.classes("source-card px-3 py-2 w-48 no-underline"):
                    ui.label(f"{i}. {source.get('title') or ''}").classes(
                        "text-xs font-medium text-gray-700 line-clamp-2"
                    )
                    ui.label(url or "Uploaded document").classes(
                        "text-[10px] text-gray-400 truncate"
                    )

    def render_message(msg: ChatMessage) -> None:
        is_user = msg.role == "user"
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"
        sources = state["sources"].get(msg.id, [])
        time_text = datetime.fromtimestamp(msg.timestamp / 1000).strftime("%I:%M %p")

        with ui.row().classes(f"w-full {align} gap-3 items-end"):
            with ui.column().classes("max-w-[80%] gap-1"):
                if sources:
                    render_sources(sources)
                with ui.element("div").classes(f"px-4 py-3 {bubble}"):
                    if is_user:
                        content = plain_text_to_html(msg.content)
                    else:
                        content = markdown_to_html(msg.content, sources)
                    ui.html(content, sanitize=False).classes("text-sm leading-relaxed")
                ui.label(time_text).classes(
                    f"text-[10px] text-gray-400 {'self-end' if is_user else 'self-start'}"
                )

    def refresh_messages() -> None:
        messages_container.clear()
        session = history.current_session
        with messages_container:
            if session is None or not session.messages:
                with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                    ui.icon("travel_explore").classes("text-5xl text-gray-300")
                    ui.label("Ask anything").classes("text-lg text-gray-400")
            else:
                for msg in session.messages:
                    render_message(msg)

    def refresh_sidebar() -> None:
        sidebar_list.clear()
        with sidebar_list:
            if not history.sessions:
                ui.label("No chats yet").classes("text-xs text-gray-400 px-2")
            for session in history.sessions:
                selected = session.id == history.current_session_id
                with ui.row().classes(
                    "w-full items-center justify-between rounded px-2 py-1 "
                    + ("bg-teal-50" if selected else "hover:bg-gray-100")
                ):
                    ui.label(session.title).classes(
                        "text-sm text-gray-700 truncate cursor-pointer flex-grow"
                    ).on("click", lambda _, sid=session.id: open_session(sid))
                    ui.button(
                        icon="delete",
                        on_click=lambda _, sid=session.id: remove_session(sid),
                    ).props("flat round dense size=sm color=grey")

    def refresh_all() -> None:
        refresh_sidebar()
        refresh_messages()

    def open_session(session_id: str) -> None:
        history.switch_session(session_id)
        save_history()
        refresh_all()

    def remove_session(session_id: str) -> None:
        history.delete_session(session_id)
        save_history()
        refresh_all()

    def new_chat() -> None:
        history.create_session()
        state["files"] = []
        save_history()
        refresh_all()

    def clear_history() -> None:
        history.clear_all_sessions()
        save_history()
        refresh_all()

    def render_status_indicator(text: str = "Searching") -> tuple[ui.row, ui.label]:
        with ui.row().classes("w-full justify-start gap-3 items-end") as row:
            with ui.element("div").classes("message-assistant px-4 py-3"):
                with ui.row().classes("items-center gap-2"):
                    with ui.row().classes("gap-1"):
                        for _ in range(3):
                            ui.element("div").classes("typing-dot")
                    label = ui.label(text).classes("text-sm text-gray-500 italic")
        return row, label

    async def send_message() -> None:
        text = (input_field.value or "").strip()
        if not text or state["streaming"]:
            return

        input_field.value = ""
        state["streaming"] = True
        send_btn.disable()

        session = history.current_session
        previous = list(session.messages) if session else []
        history.add_message("user", text)
        save_history()
        refresh_all()

        with messages_container:
            status_row, status_label = render_status_indicator(
                "Writing..." if not FOCUS_MODES[state["focus"]].search_web else "Searching..."
            )

        accumulated = ""
        sources: list[dict] = []
        response_html: ui.html | None = None
        sources_box: ui.column | None = None

        def ensure_response_bubble() -> None:
            nonlocal response_html, sources_box
            if response_html is not None:
                return
            status_row.delete()
            with (
                messages_container,
                ui.row().classes("w-full justify-start gap-3 items-end"),
                ui.column().classes("max-w-[80%] gap-1"),
            ):
                sources_box = ui.column().classes("w-full")
                with ui.element("div").classes("message-assistant px-4 py-3"):
                    response_html = ui.html("", sanitize=False).classes(
                        "text-sm leading-relaxed"
                    )

        def on_sources(items: list[dict]) -> None:
            sources.extend(items)
            status_label.set_text(f"Found {len(items)} sources, writing answer...")

        def on_chunk(content: str) -> None:
            nonlocal accumulated
            ensure_response_bubble()
            if sources and not accumulated:
                with sources_box:
                    render_sources(sources)
            accumulated += content
            response_html.set_content(markdown_to_html(accumulated, sources))

        def finish() -> None:
            state["streaming"] = False
            send_btn.enable()
            save_history()
            refresh_all()

        def on_complete() -> None:
            message = history.add_message("assistant", accumulated)
            state["sources"][message.id] = sources
            finish()

        def on_error(error: str) -> None:
            if response_html is None:
                status_row.delete()
            history.add_message("assistant", f"Error: {error}")
            finish()
            ui.notify(error, type="negative")

        payload = build_chat_payload(
            text,
            history.current_session_id,
            previous,
            state["focus"],
            state["optimization"],
            state["files"],
            state["model"],
        )
        await stream_chat_response(payload, on_chunk, on_sources, on_complete, on_error)

    async def handle_upload(e: events.UploadEventArguments) -> None:
        content = await e.file.read()
        async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=60.0) as client:
            try:
                response = await client.post(
                    "/api/uploads",
                    files={"file": (e.file.name, content, e.file.content_type)},
                )
            except httpx.RequestError as exc:
                ui.notify(f"Upload failed: {exc}", type="negative")
                return
        if response.is_error:
            ui.notify(_error_detail(response), type="negative")
            return
        body = response.json()
        state["files"].append(body["fileId"])
        ui.notify(f"Attached {body['filename']} ({body['pages']} pages)", type="positive")

    def select_model(e: events.ValueChangeEventArguments) -> None:
        if e.value:
            provider, name = e.value.split("/", 1)
            state["model"] = {"provider": provider, "name": name}
        else:
            state["model"] = None

    # === UI Layout ===
    with ui.left_drawer(value=True).classes("bg-white border-r p-3 gap-2"):
        with ui.row().classes("w-full items-center justify-between"):
            ui.label("History").classes("text-sm font-semibold text-gray-600")
            ui.button(icon="delete_sweep", on_click=clear_history).props(
                "flat round dense color=grey"
            ).tooltip("Clear all chats")
        sidebar_list = ui.column().classes("w-full gap-1")

    with (
        ui.element("div").classes("w-full min-h-screen p-4 md:p-8"),
        ui.column().classes("w-full max-w-4xl mx-auto app-container").style(
            "height: calc(100vh - 4rem)"
        ),
    ):
        with ui.row().classes("w-full header px-5 py-4 items-center justify-between"):
            with ui.row().classes("items-center gap-3"):
                ui.icon("travel_explore").classes("text-white text-3xl")
                ui.label("InsightFlow").classes("text-lg font-semibold text-white")
            with ui.row().classes("items-center gap-2"):
                model_select = ui.select(
                    {}, label="Model", on_change=select_model
                ).props(
                    "dense dark outlined options-dense"
                ).classes("w-52")
                ui.button(icon="add", on_click=new_chat).props("flat round color=white")

        status_banner = ui.label("").classes(
            "w-full px-5 py-1 text-xs text-amber-700 bg-amber-50 hidden"
        )

        with (
            ui.scroll_area().classes("flex-grow w-full bg-gray-50"),
            ui.column().classes("w-full p-5"),
        ):
            messages_container = ui.column().classes("w-full gap-4")

        with ui.column().classes("w-full p-4 gap-2 bg-white border-t"):
            with ui.row().classes("w-full gap-2 items-center"):
                ui.select(
                    {key: FOCUS_LABELS.get(key, key) for key in FOCUS_MODES},
                    value=state["focus"],
                    label="Focus",
                    on_change=lambda e: state.update(focus=e.value),
                ).props("dense outlined options-dense").classes("w-40")
                ui.select(
                    OPTIMIZATION_LABELS,
                    value=state["optimization"],
                    label="Mode",
                    on_change=lambda e: state.update(optimization=e.value),
                ).props("dense outlined options-dense").classes("w-32")
                ui.upload(
                    on_upload=handle_upload,
                    auto_upload=True,
                    max_file_size=10 * 1024 * 1024,
                ).props("accept=.pdf,.docx,.txt,.md flat dense").classes("w-64")
            with ui.row().classes("w-full gap-3 items-end"):
                with ui.element("div").classes("flex-grow input-box px-3 py-2"):
                    input_field = (
                        ui.textarea(placeholder="Ask anything...")
                        .props("autogrow borderless dense rows=1")
                        .classes("w-full")
                        .on("keydown.enter.prevent", send_message)
                    )
                send_btn = ui.button(icon="send", on_click=send_message).props(
                    "round unelevated color=teal"
                )

    async def load_backend_info() -> None:
        models = await fetch_json("/api/models")
        if models:
            options = {
                f"{provider}/{m['name']}": m["displayName"]
                for provider, items in models.get("chatModelProviders", {}).items()
                for m in items
            }
            model_select.set_options(options, value=next(iter(options), None))

        search_status = await fetch_json("/api/search/status")
        if search_status and search_status.get("fallback"):
            status_banner.set_text(search_status.get("message", ""))
            status_banner.classes(remove="hidden")

    refresh_all()
    ui.timer(0.1, load_backend_info, once=True)


def main() -> None:
    ui.run(
        title="InsightFlow",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("UI_PORT", "8080")),
        reload=False,
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "insightflow-secret"),
    )


if __name__ == "__main__":
    main()
