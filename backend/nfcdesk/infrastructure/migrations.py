"""Schema Migrations - apply versioned alembic revisions at startup.

Invariants:
    - Revisions ship inside the package (nfcdesk/db/migrations/versions) and are
      applied in order up to head, from a source checkout or an installed wheel
    - Upgrading an up-to-date database is a no-op (alembic_version table)

Design Decisions:
    - alembic's command API is synchronous and its env.py runs its own event loop,
      so the upgrade runs on a worker thread via asyncio.to_thread
    - backend/alembic.ini is for the alembic CLI only; the app builds its Config in code
"""

import asyncio
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "db" / "migrations"


def build_alembic_config(database_url: str) -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.attributes["database_url"] = database_url
    # keep the application's logging setup when migrating from inside the app
    cfg.attributes["configure_logger"] = False
    return cfg


def _upgrade_to_head(database_url: str) -> None:
    command.upgrade(build_alembic_config(database_url), "head")


async def run_migrations(database_url: str) -> None:
    logger.info("Applying schema migrations", extra={"path": str(MIGRATIONS_DIR)})
    await asyncio.to_thread(_upgrade_to_head, database_url)
