"""Main application entry point."""

from __future__ import annotations

import uvicorn

from asxwatch.api.app import create_app
from asxwatch.core.config import settings
from asxwatch.core.logging import get_logger, setup_logging


setup_logging()

logger = get_logger("main")

app = create_app()


def run() -> None:
    logger.info(f"Starting {settings.app_name} {settings.app_version} ({settings.environment})")
    uvicorn.run(
        "asxwatch.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_config=None,
    )


if __name__ == "__main__":
    run()
