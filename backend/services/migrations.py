"""Apply Alembic revisions from inside the running application."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config

logger = logging.getLogger(__name__)

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


def alembic_config(database_url: Optional[str] = None) -> Config:
    """Return the Alembic config; ``database_url`` overrides the environment."""
    config = Config(str(ALEMBIC_INI))
    config.set_main_option("script_location", str(ALEMBIC_INI.parent / "alembic"))
    # Keep the application's logging setup intact
    config.attributes["configure_logger"] = False
    if database_url:
        config.attributes["database_url"] = database_url
    return config


def upgrade_to_head(database_url: Optional[str] = None) -> None:
    logger.info("Applying database migrations")
    command.upgrade(alembic_config(database_url), "head")
    logger.info("Database migrations applied")


def downgrade_to_base(database_url: Optional[str] = None) -> None:
    logger.info("Reverting all database migrations")
    command.downgrade(alembic_config(database_url), "base")


async def run_migrations(database_url: Optional[str] = None) -> None:
    """Upgrade the database to the latest revision.

    ``alembic/env.py`` drives its own event loop, so the upgrade runs in a
    worker thread.
    """
    await asyncio.to_thread(upgrade_to_head, database_url)
