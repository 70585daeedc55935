#!/usr/bin/env python3
"""Start the registration API with Logfire tracking for startup errors."""

import sys
import logfire
import uvicorn

from snapcal.config import Settings
from snapcal.util.logging import setup_logging
from snapcal.util.observability import configure_logfire


def main() -> int:
    """Start the API and log any startup errors to Logfire."""
    settings = Settings()

    # Logfire first so that import-time errors in the app are captured
    configure_logfire(settings)
    setup_logging(settings)

    try:
        logfire.info("Starting registration API", port=settings.port)

        uvicorn.run(
            "snapcal.interface.api.app:app",
            host="0.0.0.0",
            port=settings.port,
            log_level="debug" if settings.debug else "info",
        )

        return 0

    except Exception as e:
        logfire.error(
            "Application startup failed",
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        # Re-raise so the container fails properly
        raise


if __name__ == "__main__":
    sys.exit(main())
