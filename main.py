"""Main entry point for running a Gov2Biz service."""

import os

import uvicorn
from loguru import logger

from gov2biz.core.config import get_settings
from gov2biz.core.logging import setup_logging

APP_FACTORY = "gov2biz.api.main:create_app"


def main() -> None:
    """Run the service with uvicorn."""
    settings = get_settings()

    setup_logging(settings)

    # Container platforms pass the listening port through PORT
    port = int(os.environ.get("PORT", settings.api_port))

    # Route uvicorn's own loggers through loguru
    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "handlers": {
            "default": {
                "class": "gov2biz.core.logging.InterceptHandler",
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.error": {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False,
            },
            "uvicorn.access": {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False,
            },
        },
    }

    mode = "development mode with auto-reload" if settings.debug else "production mode"
    logger.info(
        "Starting {} on http://{}:{} ({})",
        settings.app_name,
        settings.api_host,
        port,
        mode,
    )
    uvicorn.run(
        APP_FACTORY,
        factory=True,
        host=settings.api_host,
        port=port,
        reload=settings.debug,
        log_config=log_config,
    )


if __name__ == "__main__":
    main()
