"""Main application entry point.

Integrated mode serves the API and the NiceGUI chat page from one server.
Separate mode runs them as two processes; the UI process is told where the
API lives through ``API_BASE_URL``. Environment variables are loaded from
.env file; persistent settings live in config.toml (see ``CONFIG_PATH``).
"""

import logging
import os
import sys

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


class ServerSettings(BaseModel):
    """Where the API and the chat UI listen.

    Attributes:
        host: Bind address for both servers.
        port: API port (and the UI port in integrated mode).
        ui_port: NiceGUI port in separate mode.
        api_base_url: URL the UI uses to reach the API. Derived from
            ``port`` when unset.
        log_level: Uvicorn log level.
    """

    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8000")), ge=1, le=65535)
    ui_port: int = Field(
        default_factory=lambda: int(os.getenv("UI_PORT", "8080")), ge=1, le=65535
    )
    api_base_url: str = Field(default_factory=lambda: os.getenv("API_BASE_URL", ""))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "info").lower())

    def resolved_api_base_url(self) -> str:
        return (self.api_base_url or f"http://localhost:{self.port}").rstrip("/")


def build_api_command(settings: ServerSettings) -> list[str]:
    """Command line for the standalone API process."""
    return [
        sys.executable,
        "-m",
        "uvicorn",
        "src.api.app:app",
        "--host",
        settings.host,
        "--port",
        str(settings.port),
        "--log-level",
        settings.log_level,
    ]


def build_ui_command() -> list[str]:
    """Command line for the standalone NiceGUI process."""
    return [sys.executable, "-c", "from src.ui.chat_page import main; main()"]


def build_child_env(settings: ServerSettings) -> dict[str, str]:
    """Environment for both child processes in separate mode."""
    env = dict(os.environ)
    env.update(
        {
            "HOST": settings.host,
            "PORT": str(settings.port),
            "UI_PORT": str(settings.ui_port),
            "API_BASE_URL": settings.resolved_api_base_url(),
        }
    )
    return env


def _log_search_backend() -> None:
    from src.config import get_config_path, get_searxng_api_endpoint

    logger.info(f"Using config file {get_config_path()}")
    endpoint = get_searxng_api_endpoint()
    if endpoint:
        logger.info(f"SearxNG endpoint: {endpoint}")
    else:
        logger.info("SearxNG not configured, searches will use the scraping fallback")


def run_integrated(settings: ServerSettings) -> None:
    """Run FastAPI with NiceGUI mounted on the same server."""
    import uvicorn
    from nicegui import ui

    from src.api.app import create_app
    from src.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    app = create_app()

    ui.run_with(
        app,
        title="InsightFlow",
        favicon="🔎",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "insightflow-secret"),
    )

    logger.info(f"Chat UI and API on http://{settings.host}:{settings.port}/")
    logger.info(f"API docs at http://{settings.host}:{settings.port}/docs")

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)


def run_separate(settings: ServerSettings) -> None:
    """Run the API and the chat UI as two processes.

    Both children receive ``HOST``, ``PORT``, ``UI_PORT`` and ``API_BASE_URL``;
    either process exiting stops the other.
    """
    import subprocess
    import time

    env = build_child_env(settings)
    logger.info(f"Starting API on {env['API_BASE_URL']}")
    logger.info(f"Starting chat UI on http://{settings.host}:{settings.ui_port}/")

    api_proc = subprocess.Popen(build_api_command(settings), env=env)
    ui_proc = subprocess.Popen(build_ui_command(), env=env)

    try:
        while api_proc.poll() is None and ui_proc.poll() is None:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Shutting down servers...")
    finally:
        for proc in (api_proc, ui_proc):
            proc.terminate()
        for proc in (api_proc, ui_proc):
            proc.wait()


def main() -> None:
    """Application entry point.

    Set RUN_MODE=separate to run the API and the chat UI on different ports.
    """
    mode = os.getenv("RUN_MODE", "integrated").lower()
    settings = ServerSettings()

    logger.info(f"Starting InsightFlow in {mode} mode")
    _log_search_backend()

    if mode == "separate":
        run_separate(settings)
    else:
        run_integrated(settings)


if __name__ == "__main__":
    main()
