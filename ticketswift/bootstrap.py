"""Container entrypoint: wait for the database, migrate, seed, then exec uvicorn."""
import os
import sys
import time
from pathlib import Path

from alembic import command
from alembic.config import Config
from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from ticketswift.core.config import settings
from ticketswift.core.log_config import configure_logging

ROOT = Path(__file__).resolve().parent.parent


def wait_for_db(url: str, timeout_s: int = 60) -> None:
    engine = create_engine(url, pool_pre_ping=True)
    start = time.monotonic()
    logger.info("waiting for database (timeout={}s)", timeout_s)
    try:
        while True:
            try:
                with engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
                logger.info("database is ready")
                return
            except OperationalError as e:
                if time.monotonic() - start > timeout_s:
                    logger.error("timed out waiting for database: {}", e.__class__.__name__)
                    raise
                time.sleep(1)
    finally:
        engine.dispose()


def migrate(url: str) -> None:
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", url)
    command.upgrade(cfg, "head")


def seed(url: str) -> None:
    # Fresh engine created after migrations; the app engine may predate the tables.
    from ticketswift.seed import run as run_seed

    engine = create_engine(url, pool_pre_ping=True)
    try:
        run_seed(sessionmaker(autocommit=False, autoflush=False, bind=engine)())
    finally:
        engine.dispose()


def main() -> None:
    configure_logging()
    url = settings.DATABASE_URL
    wait_for_db(url, int(os.getenv("DB_WAIT_TIMEOUT", "60")))
    migrate(url)
    seed(url)
    port = os.getenv("PORT", "8000")
    os.execv(
        sys.executable,
        [sys.executable, "-m", "uvicorn", "ticketswift.main:app", "--host", "0.0.0.0", "--port", port],
    )
