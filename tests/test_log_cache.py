import os
import sys
import datetime
import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import AsyncDatabase, AsyncExerciseRepository, AsyncExerciseLogRepository
from cache_service import ExerciseCatalogCache, LogCache, UNKNOWN_EXERCISE

DAY = datetime.date(2024, 6, 10)


async def make_repos(tmp_path):
    db = AsyncDatabase(str(tmp_path / "cache.db"))
    assert await db.initialize()
    return AsyncExerciseRepository(db), AsyncExerciseLogRepository(db)


@pytest.mark.asyncio
async def test_empty_day_not_cached_unless_forced(tmp_path):
    _exercises, logs = await make_repos(tmp_path)
    cache = LogCache(logs)
    await cache.fetch(DAY)
    assert "2024-06-10" not in cache.logs
    assert cache.is_fetched(DAY) is False
    assert cache.get(DAY) is None
    await cache.fetch(DAY, force_fetch=True)
    assert cache.logs["2024-06-10"] == []
    assert cache.is_fetched(DAY)


@pytest.mark.asyncio
async def test_empty_day_cached_when_enabled(tmp_path):
    _exercises, logs = await make_repos(tmp_path)
    cache = LogCache(logs, cache_empty_days=True)
    await cache.fetch(DAY)
    assert cache.logs == {"2024-06-10": []}


@pytest.mark.asyncio
async def test_forced_fetch_matches_storage(tmp_path):
    _exercises, logs = await make_repos(tmp_path)
    cache = LogCache(logs)
    await logs.add(1, datetime.datetime(2024, 6, 10, 10, 0), 80, 5)
    await cache.fetch(datetime.datetime(2024, 6, 10, 22, 0), force_fetch=True)
    entry = cache.get(DAY)
    assert len(entry) == 1
    assert entry[0].weight == 80
    assert entry[0].reps == 5

    await logs.add(1, datetime.datetime(2024, 6, 10, 11, 0), 85, 3)
    await logs.add(1, datetime.datetime(2024, 6, 10, 12, 0), 90, 1)
    await cache.fetch(DAY, force_fetch=True)
    assert len(cache.get(DAY)) == 3


@pytest.mark.asyncio
async def test_unforced_fetch_keeps_cached_entry(tmp_path):
    _exercises, logs = await make_repos(tmp_path)
    cache = LogCache(logs)
    await logs.add(1, datetime.datetime(2024, 6, 10, 10, 0), 80, 5)
    await cache.fetch(DAY)
    assert len(cache.get(DAY)) == 1

    await logs.add(1, datetime.datetime(2024, 6, 10, 11, 0), 85, 3)
    await cache.fetch(DAY)
    assert len(cache.get(DAY)) == 1


@pytest.mark.asyncio
async def test_reads_and_markers(tmp_path):
    _exercises, logs = await make_repos(tmp_path)
    cache = LogCache(logs)
    assert cache.logs_for(DAY) == []
    await logs.add(1, datetime.datetime(2024, 6, 10, 10, 0), 80, 5)
    await cache.fetch(DAY)
    await cache.fetch(datetime.date(2024, 6, 11), force_fetch=True)
    assert [log.reps for log in cache.logs_for(DAY)] == [5]
    assert cache.dates_with_logs() == ["2024-06-10"]
    cache.clear()
    assert cache.logs == {}


@pytest.mark.asyncio
async def test_catalog_cache(tmp_path):
    exercises, _logs = await make_repos(tmp_path)
    catalog = ExerciseCatalogCache(exercises)
    bench = await exercises.add("Bench Press")
    assert catalog.exercises == []
    await catalog.fetch_all()
    assert [(e.id, e.name) for e in catalog.exercises] == [(bench, "Bench Press")]
    assert bench >= 1

    await exercises.add("Incline Bench")
    await exercises.add("Squat")
    await exercises.add("Bench Dip")
    await catalog.fetch_all()
    assert [e.name for e in catalog.search("bench")] == [
        "Bench Press",
        "Incline Bench",
        "Bench Dip",
    ]
    assert len(catalog.search("BENCH", limit=2)) == 2
    assert catalog.search("deadlift") == []
    assert catalog.name_for(bench) == "Bench Press"
    assert catalog.name_for(999) == UNKNOWN_EXERCISE

    await exercises.remove(bench)
    assert catalog.get(bench) is not None
    await catalog.fetch_all()
    assert catalog.get(bench) is None
    catalog.clear()
    assert catalog.exercises == []
