"""Unit tests for the main.py entry point."""

import pytest
from pytest_mock import MockerFixture

import main
from src.core.config import Settings


@pytest.fixture
def run_settings() -> Settings:
    """Settings the entry point is started with."""
    return Settings(_env_file=None, debug=False, api_host="0.0.0.0", api_port=3000)


@pytest.mark.unit
class TestMain:
    """Starting uvicorn."""

    def test_runs_app_import_string(
        self,
        mocker: MockerFixture,
        monkeypatch: pytest.MonkeyPatch,
        run_settings: Settings,
    ) -> None:
        """Uvicorn gets the import string, host, port and Loguru bridge."""
        monkeypatch.delenv("PORT", raising=False)
        mocker.patch("main.get_settings", return_value=run_settings)
        setup_logging = mocker.patch("main.setup_logging")
        uvicorn_run = mocker.patch("main.uvicorn.run")

        main.main()

        setup_logging.assert_called_once_with(run_settings)
        args, kwargs = uvicorn_run.call_args
        assert args == ("src.api.main:app",)
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 3000
        assert kwargs["reload"] is False
        handler = kwargs["log_config"]["handlers"]["default"]
        assert handler["class"] == "src.core.logging.InterceptHandler"

    def test_port_environment_variable_wins(
        self,
        mocker: MockerFixture,
        monkeypatch: pytest.MonkeyPatch,
        run_settings: Settings,
    ) -> None:
        """Managed platforms choose the port through PORT."""
        monkeypatch.setenv("PORT", "8080")
        mocker.patch("main.get_settings", return_value=run_settings)
        mocker.patch("main.setup_logging")
        uvicorn_run = mocker.patch("main.uvicorn.run")

        main.main()

        assert uvicorn_run.call_args.kwargs["port"] == 8080
