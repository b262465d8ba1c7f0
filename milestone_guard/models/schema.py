# milestone_guard/models/schema.py
"""
Database schema definition for SQLite milestone persistence.

Provides DDL for tables, indexes, and schema initialization.
"""

import logging

import aiosqlite

logger = logging.getLogger(__name__)

# Schema version for future migrations
SCHEMA_VERSION = 1

MILESTONES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS milestones (
    id TEXT PRIMARY KEY,
    stream_type TEXT NOT NULL,
    status TEXT NOT NULL CHECK(status IN ('not_started', 'in_progress', 'in_review', 'blocked', 'completed')),
    risk_level TEXT NOT NULL CHECK(risk_level IN ('low', 'medium', 'high', 'critical')),
    estimated_start_date TEXT NOT NULL,
    data TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

VALIDATIONS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS validation_results (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    milestone_id TEXT NOT NULL,
    overall_score REAL NOT NULL CHECK(overall_score >= 0.0 AND overall_score <= 100.0),
    is_validated INTEGER NOT NULL,
    timestamp TEXT NOT NULL,
    data TEXT NOT NULL
)
"""

ASSESSMENTS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS risk_assessments (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    milestone_id TEXT NOT NULL,
    level TEXT NOT NULL,
    risk_score REAL NOT NULL,
    assessed_at TEXT NOT NULL,
    data TEXT NOT NULL
)
"""

INDEX_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_milestones_stream ON milestones(stream_type)",
    "CREATE INDEX IF NOT EXISTS idx_milestones_status ON milestones(status)",
    "CREATE INDEX IF NOT EXISTS idx_validations_milestone ON validation_results(milestone_id, seq)",
    "CREATE INDEX IF NOT EXISTS idx_assessments_milestone ON risk_assessments(milestone_id, seq)",
]


async def _get_schema_version(db: aiosqlite.Connection) -> int:
    """
    Get current schema version from database.

    Returns:
        Schema version (0 if no version table exists)
    """
    try:
        cursor = await db.execute("SELECT version FROM schema_version LIMIT 1")
        row = await cursor.fetchone()
        return row[0] if row else 0
    except aiosqlite.OperationalError:
        return 0


async def _set_schema_version(db: aiosqlite.Connection, version: int) -> None:
    await db.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER)")
    await db.execute("DELETE FROM schema_version")
    await db.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))


async def init_db(db_path: str) -> None:
    """
    Initialize database schema with WAL mode and optimal settings.

    Args:
        db_path: Path to SQLite database file

    Settings:
        - WAL mode: Concurrent reads + writes
        - synchronous=NORMAL: Good durability/performance balance
        - busy_timeout=5000ms: Retry on SQLITE_BUSY
    """
    async with aiosqlite.connect(db_path) as db:
        await db.execute("PRAGMA journal_mode=WAL")
        await db.execute("PRAGMA synchronous=NORMAL")
        await db.execute("PRAGMA busy_timeout=5000")

        await db.execute(MILESTONES_TABLE_SQL)
        await db.execute(VALIDATIONS_TABLE_SQL)
        await db.execute(ASSESSMENTS_TABLE_SQL)
        for statement in INDEX_SQL:
            await db.execute(statement)

        current_version = await _get_schema_version(db)
        if current_version < SCHEMA_VERSION:
            await _set_schema_version(db, SCHEMA_VERSION)
            logger.info(f"New database initialized at v{SCHEMA_VERSION}")

        await db.commit()

        logger.info(f"Initialized database at {db_path} (schema v{SCHEMA_VERSION})")
