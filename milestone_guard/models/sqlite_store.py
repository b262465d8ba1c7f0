# milestone_guard/models/sqlite_store.py
"""
SQLite-backed milestone persistence.

Milestones, validation results and risk assessments are stored as JSON
documents next to a few indexed columns used for filtering.
"""

import logging
from datetime import datetime, timezone

import aiosqlite

from milestone_guard.models.milestone import ACTIVE_STATUSES, Milestone, StreamType
from milestone_guard.models.results import RiskAssessment, ValidationResult
from milestone_guard.models.schema import init_db
from milestone_guard.models.store import MilestoneStore

logger = logging.getLogger(__name__)


class SQLiteMilestoneStore(MilestoneStore):
    """
    Async SQLite-backed milestone storage.

    Features:
        - WAL mode for concurrent reads/writes
        - IMMEDIATE transactions for write safety
        - No persistent connections (avoids resource leaks)
    """

    def __init__(self, db_path: str) -> None:
        """
        Initialize SQLite milestone store.

        Args:
            db_path: Path to SQLite database file
        """
        self._db_path = db_path
        logger.info(f"Created SQLiteMilestoneStore with path: {db_path}")

    async def initialize(self) -> None:
        """Initialize database schema."""
        await init_db(self._db_path)

    async def get(self, milestone_id: str) -> Milestone | None:
        async with aiosqlite.connect(self._db_path) as db:
            cursor = await db.execute("SELECT data FROM milestones WHERE id = ?", (milestone_id,))
            row = await cursor.fetchone()

            if not row:
                return None

            return Milestone.model_validate_json(row[0])

    async def list_all(self, stream_type: StreamType | None = None) -> list[Milestone]:
        async with aiosqlite.connect(self._db_path) as db:
            if stream_type is None:
                cursor = await db.execute(
                    "SELECT data FROM milestones ORDER BY estimated_start_date ASC"
                )
            else:
                cursor = await db.execute(
                    "SELECT data FROM milestones WHERE stream_type = ? "
                    "ORDER BY estimated_start_date ASC",
                    (StreamType(stream_type).value,),
                )
            rows = await cursor.fetchall()

            return [Milestone.model_validate_json(row[0]) for row in rows]

    async def save(self, milestone: Milestone) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("BEGIN IMMEDIATE")

            try:
                await db.execute(
                    """
                    INSERT INTO milestones (
                        id, stream_type, status, risk_level,
                        estimated_start_date, data, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        stream_type = excluded.stream_type,
                        status = excluded.status,
                        risk_level = excluded.risk_level,
                        estimated_start_date = excluded.estimated_start_date,
                        data = excluded.data,
                        updated_at = excluded.updated_at
                    """,
                    (
                        milestone.id,
                        milestone.stream_type.value,
                        milestone.status.value,
                        milestone.risk_level.value,
                        milestone.estimated_start_date.isoformat(),
                        milestone.model_dump_json(),
                        datetime.now(timezone.utc).isoformat(),
                    ),
                )

                await db.commit()
                logger.debug(f"Saved milestone {milestone.id} to SQLite store")

            except Exception:
                await db.rollback()
                raise

    async def count_active(self) -> int:
        statuses = sorted(s.value for s in ACTIVE_STATUSES)
        placeholders = ", ".join("?" for _ in statuses)
        async with aiosqlite.connect(self._db_path) as db:
            cursor = await db.execute(
                f"SELECT COUNT(*) FROM milestones WHERE status IN ({placeholders})", statuses
            )
            row = await cursor.fetchone()
            return row[0] if row else 0

    async def save_validation(self, result: ValidationResult) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                "INSERT INTO validation_results "
                "(milestone_id, overall_score, is_validated, timestamp, data) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    result.milestone_id,
                    result.overall_score,
                    1 if result.is_validated else 0,
                    result.timestamp.isoformat(),
                    result.model_dump_json(),
                ),
            )
            await db.commit()

    async def save_assessment(self, assessment: RiskAssessment) -> None:
        assessed_at = assessment.assessed_at or datetime.now(timezone.utc)
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                "INSERT INTO risk_assessments "
                "(milestone_id, level, risk_score, assessed_at, data) VALUES (?, ?, ?, ?, ?)",
                (
                    assessment.milestone_id,
                    assessment.level.value,
                    assessment.risk_score,
                    assessed_at.isoformat(),
                    assessment.model_dump_json(),
                ),
            )
            await db.commit()

    async def latest_validation(self, milestone_id: str) -> ValidationResult | None:
        async with aiosqlite.connect(self._db_path) as db:
            cursor = await db.execute(
                "SELECT data FROM validation_results WHERE milestone_id = ? "
                "ORDER BY seq DESC LIMIT 1",
                (milestone_id,),
            )
            row = await cursor.fetchone()

            if not row:
                return None

            return ValidationResult.model_validate_json(row[0])

    async def close(self) -> None:
        """
        Checkpoint WAL and close database.

        Truncates WAL file to avoid unbounded growth.
        """
        try:
            async with aiosqlite.connect(self._db_path) as db:
                await db.execute("PRAGMA wal_checkpoint(TRUNCATE)")
                logger.info("WAL checkpoint completed")
        except aiosqlite.Error as e:
            logger.warning(f"WAL checkpoint failed: {e}")
