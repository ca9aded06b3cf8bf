# jobdispatch/infra/migrations_async.py
"""
Async database migrations runner (asyncpg).

Files in ``jobdispatch/infra/sql`` are applied in name order inside a
single transaction; applied versions are tracked in ``schema_migrations``.
"""
from __future__ import annotations
from pathlib import Path

from jobdispatch.infra.db_async import db_conn
from jobdispatch.infra.logging_config import get_logger

logger = get_logger(__name__)


def _sql_dir() -> Path:
    return Path(__file__).resolve().parent / "sql"


def pending_files(applied: set[str]) -> list[Path]:
    """Migration files not yet recorded in ``schema_migrations``, in apply order."""
    files = sorted(p for p in _sql_dir().glob("*.sql") if p.is_file())
    return [p for p in files if p.name not in applied]


async def apply_migrations() -> dict:
    """
    Apply pending SQL migrations.

    Returns:
        dict with keys ``ok``, ``applied`` (filenames applied in this run)
        and ``count``.
    """
    async with db_conn(autocommit=False) as conn:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations(
              version text PRIMARY KEY,
              applied_at timestamptz NOT NULL DEFAULT now()
            )
            """
        )

        rows = await conn.fetch("SELECT version FROM schema_migrations")
        applied = {row["version"] for row in rows}

        applied_now = []
        for p in pending_files(applied):
            version = p.name
            logger.info("Applying migration: %s", version)

            await conn.execute(p.read_text(encoding="utf-8"))
            await conn.execute(
                "INSERT INTO schema_migrations(version) VALUES ($1)",
                version,
            )
            applied_now.append(version)

    logger.info("Migrations complete: %d applied", len(applied_now))
    return {"ok": True, "applied": applied_now, "count": len(applied_now)}
