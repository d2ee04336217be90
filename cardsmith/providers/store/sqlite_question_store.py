"""SQLite-backed question store.

Persists extracted flashcards to a local SQLite database at
``data/questions.db`` using ``aiosqlite`` for async I/O.

Each row is keyed by ``sha256(question.strip())`` so re-syncing a source
refreshes the answer of a card the user may already be studying instead
of creating a duplicate.  ``created_at`` survives updates.
"""

from __future__ import annotations

import hashlib
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from cardsmith.interfaces.question_store import IQuestionStore
from cardsmith.models.question import ExtractedQA, UpsertResult
from cardsmith.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/questions.db")

_CREATE_QUESTIONS_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS questions (
    id            TEXT PRIMARY KEY,
    question_text TEXT NOT NULL,
    answer_text   TEXT NOT NULL,
    source        TEXT NOT NULL,
    source_name   TEXT,
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_questions_source ON questions(source);",
]

_SELECT_EXISTS_SQL = "SELECT 1 FROM questions WHERE id = ?;"

_INSERT_QUESTION_SQL = """\
INSERT INTO questions (id, question_text, answer_text, source, source_name, created_at, updated_at)
VALUES (?, ?, ?, ?, ?, ?, ?);
"""

_UPDATE_QUESTION_SQL = """\
UPDATE questions
SET answer_text = ?, source = ?, source_name = ?, updated_at = ?
WHERE id = ?;
"""

_SELECT_QUESTIONS_SQL = """\
SELECT id, question_text, answer_text, source, source_name, created_at, updated_at
FROM questions
"""


def question_id(question_text: str) -> str:
    """Return the stable SHA-256 hex id for a question's text."""
    return hashlib.sha256(question_text.strip().encode("utf-8")).hexdigest()


class SQLiteQuestionStore(IQuestionStore):
    """SQLite question persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the questions table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_QUESTIONS_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("question_store_initialized", path=str(self._db_path))

    async def upsert_questions(
        self,
        questions: list[ExtractedQA],
        source: str,
        source_name: str | None = None,
    ) -> UpsertResult:
        """Insert or update every question in one transaction.

        Rows that fail individually (e.g. a constraint violation) are
        counted as ``skipped``; a failure to open or commit the database
        raises :class:`PersistenceError`.
        """
        now = datetime.now(tz=timezone.utc).isoformat()  # noqa: UP017
        inserted = updated = skipped = 0

        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                for qa in questions:
                    qid = question_id(qa.question)
                    try:
                        cursor = await db.execute(_SELECT_EXISTS_SQL, (qid,))
                        exists = await cursor.fetchone() is not None
                        await cursor.close()
                        if exists:
                            await db.execute(
                                _UPDATE_QUESTION_SQL,
                                (qa.answer, source, source_name, now, qid),
                            )
                            updated += 1
                        else:
                            await db.execute(
                                _INSERT_QUESTION_SQL,
                                (qid, qa.question, qa.answer, source, source_name, now, now),
                            )
                            inserted += 1
                    except sqlite3.IntegrityError as exc:
                        logger.warning("question_upsert_skipped", question_id=qid, error=str(exc))
                        skipped += 1
                await db.commit()
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceError(
                message=f"Failed to upsert questions for {source}: {exc}",
                provider_name="sqlite",
            ) from exc

        result = UpsertResult(
            inserted=inserted,
            updated=updated,
            skipped=skipped,
            total=len(questions),
        )
        logger.info(
            "questions_upserted",
            source=source,
            inserted=inserted,
            updated=updated,
            skipped=skipped,
        )
        return result

    async def count(self, source: str | None = None) -> int:
        sql = "SELECT COUNT(*) FROM questions"
        params: tuple[Any, ...] = ()
        if source is not None:
            sql += " WHERE source = ?"
            params = (source,)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(sql, params)
                row = await cursor.fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(message=f"Failed to count questions: {exc}", provider_name="sqlite") from exc
        return int(row[0]) if row else 0

    async def list_questions(self, source: str | None = None) -> list[dict[str, Any]]:
        sql = _SELECT_QUESTIONS_SQL
        params: tuple[Any, ...] = ()
        if source is not None:
            sql += "WHERE source = ? "
            params = (source,)
        sql += "ORDER BY created_at, rowid;"
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(sql, params)
                rows = await cursor.fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(message=f"Failed to list questions: {exc}", provider_name="sqlite") from exc
        return [dict(row) for row in rows]
