import os
import sqlite3
import sys
import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import AsyncDatabase, AsyncExerciseLogRepository


class TestSchemaMigration:
    @pytest.mark.asyncio
    async def test_integer_weight_column_becomes_real(self, tmp_path):
        db_file = tmp_path / "workouts.db"
        conn = sqlite3.connect(str(db_file))
        conn.execute(
            "CREATE TABLE workouts (id INTEGER PRIMARY KEY AUTOINCREMENT, date INTEGER NOT NULL, "
            "exerciseId INTEGER NOT NULL, weight INTEGER NOT NULL, reps INTEGER NOT NULL)"
        )
        conn.execute(
            "INSERT INTO workouts (date, exerciseId, weight, reps) VALUES (?, ?, ?, ?)",
            (1718013600000, 1, 80, 5),
        )
        conn.commit()
        conn.close()

        db = AsyncDatabase(str(db_file))
        assert await db.initialize()

        conn = sqlite3.connect(str(db_file))
        cols = {row[1]: row[2] for row in conn.execute("PRAGMA table_info(workouts)")}
        assert cols["weight"] == "REAL"
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='workouts_old'"
        )
        assert cur.fetchone() is None
        conn.close()

        repo = AsyncExerciseLogRepository(db)
        log = await repo.fetch_detail(1)
        assert log.weight == 80.0
        assert log.reps == 5
        await repo.update(1, 82.5, 5)
        assert (await repo.fetch_detail(1)).weight == 82.5

    @pytest.mark.asyncio
    async def test_drops_existing_backup_table(self, tmp_path):
        db_file = tmp_path / "workouts.db"
        conn = sqlite3.connect(str(db_file))
        conn.execute("CREATE TABLE exercises (id INTEGER PRIMARY KEY AUTOINCREMENT)")
        conn.execute("CREATE TABLE exercises_old (id INTEGER)")
        conn.commit()
        conn.close()

        assert await AsyncDatabase(str(db_file)).initialize()

        conn = sqlite3.connect(str(db_file))
        cols = [row[1] for row in conn.execute("PRAGMA table_info(exercises)")]
        assert cols == ["id", "name"]
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='exercises_old'"
        )
        assert cur.fetchone() is None
        conn.close()

    @pytest.mark.asyncio
    async def test_failed_copy_keeps_original_table(self, tmp_path):
        db_file = tmp_path / "workouts.db"
        conn = sqlite3.connect(str(db_file))
        conn.execute(
            "CREATE TABLE workouts (id INTEGER PRIMARY KEY AUTOINCREMENT, date INTEGER NOT NULL, "
            "exerciseId INTEGER NOT NULL, weight INTEGER, reps INTEGER NOT NULL)"
        )
        conn.execute(
            "INSERT INTO workouts (date, exerciseId, weight, reps) VALUES (?, ?, ?, ?)",
            (1718013600000, 1, None, 5),
        )
        conn.commit()
        conn.close()

        db = AsyncDatabase(str(db_file))
        assert await db.initialize() is False
        assert db.error

        conn = sqlite3.connect(str(db_file))
        cols = {row[1]: row[2] for row in conn.execute("PRAGMA table_info(workouts)")}
        assert cols["weight"] == "INTEGER"
        assert conn.execute("SELECT reps FROM workouts").fetchall() == [(5,)]
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='workouts_old'"
        )
        assert cur.fetchone() is None
        conn.close()
