"""Main entry point for running the itemkit FastAPI application."""

import os
import sys

import uvicorn
from loguru import logger
from pydantic import ValidationError

from itemkit.core.config import Settings, format_settings_errors, get_settings
from itemkit.core.logging import setup_logging

# uvicorn's own loggers are routed through the InterceptHandler
UVICORN_LOG_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "default": {
            "class": "itemkit.core.logging.InterceptHandler",
        },
    },
    "loggers": {
        "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.error": {
            "handlers": ["default"],
            "level": "INFO",
            "propagate": False,
        },
    },
}


def load_settings() -> Settings:
    """Load and validate settings, exiting with status 1 when they are invalid."""
    try:
        return get_settings()
    except ValidationError as exc:
        for line in format_settings_errors(exc):
            logger.error("Invalid configuration - {}", line)
        sys.exit(1)


def main() -> None:
    """Validate configuration, then serve the application."""
    settings = load_settings()
    setup_logging(settings)

    # Hosting platforms pass the listen port through PORT
    port = int(os.environ.get("PORT", settings.api_port))

    logger.info(
        "Starting Uvicorn on http://{}:{} ({} mode)",
        settings.api_host,
        port,
        settings.environment,
    )

    # On SIGTERM uvicorn stops accepting connections; in-flight requests get
    # timeout_graceful_shutdown seconds before their connections are closed
    uvicorn.run(
        "itemkit.api.main:create_app",
        factory=True,
        host=settings.api_host,
        port=port,
        reload=settings.debug,
        log_config=UVICORN_LOG_CONFIG,
        timeout_graceful_shutdown=settings.shutdown_timeout_seconds,
    )


if __name__ == "__main__":
    main()
