import datetime
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Tuple

import aiosqlite

from models import Exercise, ExerciseLog
from tools import DateLike, DateTools

logger = logging.getLogger(__name__)


class StoreNotInitializedError(RuntimeError):
    """Raised when the store is used before its schema has been created."""


class AsyncDatabase:
    """Provides asynchronous SQLite connection management and schema initialization.

    Nothing is created on construction. :meth:`initialize` creates the schema
    and flips :attr:`initialized`; until then every query is rejected with
    :class:`StoreNotInitializedError`. A failed initialization is recorded in
    :attr:`error` instead of being raised.
    """

    _TABLE_DEFINITIONS = {
        "exercises": (
            """CREATE TABLE exercises (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL
                );""",
            [("id", "INTEGER"), ("name", "TEXT")],
        ),
        "workouts": (
            """CREATE TABLE workouts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    date INTEGER NOT NULL,
                    exerciseId INTEGER NOT NULL,
                    weight REAL NOT NULL,
                    reps INTEGER NOT NULL
                );""",
            [
                ("id", "INTEGER"),
                ("date", "INTEGER"),
                ("exerciseId", "INTEGER"),
                ("weight", "REAL"),
                ("reps", "INTEGER"),
            ],
        ),
    }

    def __init__(self, db_path: str = "workouts.db") -> None:
        self._db_path = db_path
        self.initialized = False
        self.error: Optional[str] = None

    @property
    def db_path(self) -> str:
        return self._db_path

    @asynccontextmanager
    async def _async_connection(self):
        conn = await aiosqlite.connect(self._db_path)
        conn.row_factory = aiosqlite.Row
        try:
            yield conn
            await conn.commit()
        finally:
            await conn.close()

    async def initialize(self) -> bool:
        """Create missing tables. Return ``True`` once the store is usable."""
        logger.info("Initializing database %s", self._db_path)
        try:
            async with self._async_connection() as conn:
                for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                    await self._ensure_table(conn, table, sql, columns)
        except Exception as e:
            self.error = str(e)
            self.initialized = False
            logger.exception("Database initialization failed")
            return False
        self.error = None
        self.initialized = True
        logger.info("Database initialized")
        return True

    async def _ensure_table(
        self,
        conn: aiosqlite.Connection,
        table: str,
        sql: str,
        columns: List[Tuple[str, str]],
    ) -> None:
        cur = await conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if await cur.fetchone() is None:
            await conn.execute(sql)
            return

        cur = await conn.execute(f"PRAGMA table_info({table});")
        existing = [(row[1], row[2].upper()) for row in await cur.fetchall()]
        if existing == columns:
            return

        logger.info("Migrating table %s from %s", table, existing)
        await conn.execute("BEGIN;")
        try:
            await self._migrate_table(conn, table, sql, columns, existing)
        except Exception:
            await conn.rollback()
            raise
        await conn.commit()

    async def _migrate_table(
        self,
        conn: aiosqlite.Connection,
        table: str,
        sql: str,
        columns: List[Tuple[str, str]],
        existing: List[Tuple[str, str]],
    ) -> None:
        await conn.execute(f"DROP TABLE IF EXISTS {table}_old;")
        await conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        await conn.execute(sql)

        existing_names = [name for name, _type in existing]
        common = [name for name, _type in columns if name in existing_names]
        missing = [name for name, _type in columns if name not in existing_names]
        if common:
            cols = ", ".join(common)
            if missing:
                defaults = ", ".join("0" for _ in missing)
                await conn.execute(
                    f"INSERT INTO {table} ({cols}, {', '.join(missing)}) "
                    f"SELECT {cols}, {defaults} FROM {table}_old;"
                )
            else:
                await conn.execute(
                    f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;"
                )
        await conn.execute(f"DROP TABLE {table}_old;")

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise StoreNotInitializedError("Database not initialized")

    async def run_query(self, sql: str, params: Tuple = ()) -> List[Dict[str, Any]]:
        """Run a parameterized read and return the rows as dictionaries."""
        self._require_initialized()
        logger.debug("query: %s %s", sql, params)
        async with self._async_connection() as conn:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def run_statement(self, sql: str, params: Tuple = ()) -> int:
        """Run a parameterized write and return the last inserted row id."""
        self._require_initialized()
        logger.debug("statement: %s %s", sql, params)
        async with self._async_connection() as conn:
            cursor = await conn.execute(sql, params)
            return cursor.lastrowid


class AsyncBaseRepository:
    """Base repository delegating to a shared :class:`AsyncDatabase`."""

    def __init__(self, db: AsyncDatabase) -> None:
        self.db = db

    async def execute(self, query: str, params: Tuple = ()) -> int:
        return await self.db.run_statement(query, params)

    async def fetch_all(self, query: str, params: Tuple = ()) -> List[Dict[str, Any]]:
        return await self.db.run_query(query, params)

    async def fetch_one(self, query: str, params: Tuple = ()) -> Optional[Dict[str, Any]]:
        rows = await self.fetch_all(query, params)
        return rows[0] if rows else None


class AsyncExerciseRepository(AsyncBaseRepository):
    """Async repository for the exercise catalog."""

    async def add(self, name: str) -> int:
        return await self.execute("INSERT INTO exercises (name) VALUES (?);", (name,))

    async def fetch_all_exercises(self) -> List[Exercise]:
        rows = await self.fetch_all("SELECT id, name FROM exercises;")
        return [Exercise(**row) for row in rows]

    async def fetch_detail(self, exercise_id: int) -> Optional[Exercise]:
        row = await self.fetch_one(
            "SELECT id, name FROM exercises WHERE id = ?;", (exercise_id,)
        )
        return Exercise(**row) if row else None

    async def update_name(self, exercise_id: int, name: str) -> None:
        await self.execute(
            "UPDATE exercises SET name = ? WHERE id = ?;", (name, exercise_id)
        )

    async def remove(self, exercise_id: int) -> None:
        await self.execute("DELETE FROM exercises WHERE id = ?;", (exercise_id,))


class AsyncExerciseLogRepository(AsyncBaseRepository):
    """Async repository for logged sets stored in the ``workouts`` table."""

    _COLUMNS = "id, date, exerciseId, weight, reps"

    async def add(
        self,
        exercise_id: int,
        date: datetime.date,
        weight: float,
        reps: int,
    ) -> int:
        if not isinstance(date, datetime.datetime):
            date = datetime.datetime.combine(date, datetime.time.min)
        return await self.execute(
            "INSERT INTO workouts (date, exerciseId, weight, reps) VALUES (?, ?, ?, ?);",
            (DateTools.to_millis(date), exercise_id, weight, reps),
        )

    async def update(self, log_id: int, weight: float, reps: int) -> None:
        await self.execute(
            "UPDATE workouts SET weight = ?, reps = ? WHERE id = ?;",
            (weight, reps, log_id),
        )

    async def remove(self, log_id: int) -> None:
        await self.execute("DELETE FROM workouts WHERE id = ?;", (log_id,))

    async def fetch_detail(self, log_id: int) -> Optional[ExerciseLog]:
        row = await self.fetch_one(
            f"SELECT {self._COLUMNS} FROM workouts WHERE id = ?;", (log_id,)
        )
        return ExerciseLog(**row) if row else None

    async def fetch_for_day(self, date: DateLike) -> List[ExerciseLog]:
        """Return all logs whose timestamp falls within the local day of ``date``."""
        start, end = DateTools.day_bounds(date)
        rows = await self.fetch_all(
            f"SELECT {self._COLUMNS} FROM workouts WHERE date >= ? AND date <= ?;",
            (start, end),
        )
        return [ExerciseLog(**row) for row in rows]

    async def fetch_all_logs(self) -> List[ExerciseLog]:
        rows = await self.fetch_all(
            f"SELECT {self._COLUMNS} FROM workouts ORDER BY date, id;"
        )
        return [ExerciseLog(**row) for row in rows]
