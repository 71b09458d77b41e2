"""Main entry point for the reservation ledger HTTP service."""

import sys

import uvicorn

from hotel_ledger.api import create_app
from hotel_ledger.config import configure_logging, get_logger, settings

logger = get_logger(__name__)


def main() -> int:
    """Build the application and serve it until interrupted.

    Returns:
        Process exit code
    """
    configure_logging()
    logger.info(
        "Starting reservation ledger",
        environment=settings.environment,
        host=settings.api.host,
        port=settings.api.port,
        catalog_path=settings.api.catalog_path,
    )

    try:
        app = create_app()
        uvicorn.run(
            app,
            host=settings.api.host,
            port=settings.api.port,
            log_config=None,
        )
    except Exception as e:
        logger.error(
            "Fatal error in main application",
            error=str(e),
            exc_info=True,
        )
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
