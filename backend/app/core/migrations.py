from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from .config import settings


logger = logging.getLogger(__name__)

# backend/ holds alembic.ini; this file is backend/app/core/migrations.py
BACKEND_ROOT = Path(__file__).resolve().parents[2]
VERSIONS_DIR = BACKEND_ROOT / "app" / "migrations" / "versions"


def alembic_config() -> Config:
    cfg = Config(str(BACKEND_ROOT / "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    cfg.set_main_option("script_location", str(BACKEND_ROOT / "app" / "migrations"))
    return cfg


def init_and_upgrade() -> None:
    """Upgrade the database to head, creating the initial revision on a fresh checkout."""
    cfg = alembic_config()
    VERSIONS_DIR.mkdir(parents=True, exist_ok=True)
    if not any(p.suffix == ".py" for p in VERSIONS_DIR.iterdir()):
        logger.info("No migrations found; generating initial revision")
        command.revision(cfg, message="initial schema", autogenerate=True)
    command.upgrade(cfg, "head")
    logger.info("Database migrated to head")
