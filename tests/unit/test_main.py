"""Unit tests for server settings and the separate-mode process wiring."""

import sys
from unittest.mock import patch

import pytest_check as check

from src.main import ServerSettings, build_api_command, build_child_env, build_ui_command


class TestServerSettings:
    """Tests for environment-driven server settings."""

    def test_defaults(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = ServerSettings()

        check.equal(settings.host, "0.0.0.0")
        check.equal(settings.port, 8000)
        check.equal(settings.ui_port, 8080)
        check.equal(settings.resolved_api_base_url(), "http://localhost:8000")

    def test_api_base_url_follows_port_when_unset(self) -> None:
        with patch.dict("os.environ", {"PORT": "9100"}, clear=True):
            settings = ServerSettings()

        assert settings.resolved_api_base_url() == "http://localhost:9100"

    def test_explicit_api_base_url_wins(self) -> None:
        settings = ServerSettings(port=9100, api_base_url="http://api.internal:9000/")

        assert settings.resolved_api_base_url() == "http://api.internal:9000"


class TestSeparateMode:
    """Tests for the child process commands and environment."""

    def test_api_command_uses_configured_host_and_port(self) -> None:
        settings = ServerSettings(host="127.0.0.1", port=9100, log_level="debug")

        command = build_api_command(settings)

        check.equal(command[:4], [sys.executable, "-m", "uvicorn", "src.api.app:app"])
        check.is_in("9100", command)
        check.equal(command[command.index("--host") + 1], "127.0.0.1")
        check.is_not_in("--reload", command)

    def test_ui_command_runs_chat_page(self) -> None:
        assert "src.ui.chat_page" in build_ui_command()[-1]

    def test_child_env_points_ui_at_api(self) -> None:
        settings = ServerSettings(host="127.0.0.1", port=9100, ui_port=9200, api_base_url="")

        with patch.dict("os.environ", {"SEARXNG_API_URL": "http://searxng.test"}):
            env = build_child_env(settings)

        check.equal(env["PORT"], "9100")
        check.equal(env["UI_PORT"], "9200")
        check.equal(env["HOST"], "127.0.0.1")
        check.equal(env["API_BASE_URL"], "http://localhost:9100")
        check.equal(env["SEARXNG_API_URL"], "http://searxng.test")
