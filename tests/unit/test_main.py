"""Unit tests for the process entry point."""

import pytest
from pydantic import ValidationError
from pytest_mock import MockerFixture

import main
from itemkit.core.config import Settings


@pytest.mark.unit
class TestLoadSettings:
    """Test configuration loading at startup."""

    def test_returns_settings(self, mocker: MockerFixture, test_settings: Settings) -> None:
        """Valid configuration is returned as is."""
        mocker.patch.object(main, "get_settings", return_value=test_settings)

        assert main.load_settings() is test_settings

    def test_invalid_configuration_exits_with_status_1(
        self, mocker: MockerFixture
    ) -> None:
        """Each violated constraint is logged before exiting."""
        error = ValidationError.from_exception_data(
            "Settings",
            [{"type": "missing", "loc": ("jwt_secret",), "input": {}}],
        )
        mocker.patch.object(main, "get_settings", side_effect=error)
        mock_logger = mocker.patch.object(main, "logger")

        with pytest.raises(SystemExit) as exc_info:
            main.load_settings()

        assert exc_info.value.code == 1
        logged = mock_logger.error.call_args.args
        assert logged[1] == "JWT_SECRET: Field required"


@pytest.mark.unit
class TestMain:
    """Test server startup."""

    @pytest.fixture
    def run(self, mocker: MockerFixture, test_settings: Settings) -> object:
        """Patch out settings, logging and the server itself."""
        mocker.patch.object(main, "get_settings", return_value=test_settings)
        mocker.patch.object(main, "setup_logging")
        return mocker.patch.object(main.uvicorn, "run")

    def test_runs_app_factory(
        self, run: object, test_settings: Settings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """uvicorn serves the application factory with a shutdown deadline."""
        monkeypatch.delenv("PORT", raising=False)

        main.main()

        args, kwargs = run.call_args  # type: ignore[attr-defined]
        assert args == ("itemkit.api.main:create_app",)
        assert kwargs["factory"] is True
        assert kwargs["port"] == test_settings.api_port
        assert kwargs["timeout_graceful_shutdown"] == 10
        assert kwargs["log_config"] is main.UVICORN_LOG_CONFIG

    def test_port_from_environment(
        self, run: object, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """PORT overrides the configured port."""
        monkeypatch.setenv("PORT", "8123")

        main.main()

        assert run.call_args.kwargs["port"] == 8123  # type: ignore[attr-defined]
