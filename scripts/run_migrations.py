#!/usr/bin/env python3
"""Apply Alembic migrations with Logfire error tracking."""

import sys
import logfire
from alembic import command
from alembic.config import Config

from snapcal.config import Settings
from snapcal.util.observability import configure_logfire


def main() -> int:
    """Upgrade the schema to head and log any failure to Logfire."""
    settings = Settings()
    configure_logfire(settings)

    try:
        with logfire.span("run_migrations", environment=settings.environment):
            command.upgrade(Config("alembic.ini"), "head")
        logfire.info("Database migrations completed")
        return 0

    except Exception as e:
        logfire.error(
            "Database migration failed",
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        # Re-raise so the API never starts against a broken schema
        raise


if __name__ == "__main__":
    sys.exit(main())
