from __future__ import annotations

import logging
from typing import Dict, List, Optional

from db import AsyncExerciseLogRepository, AsyncExerciseRepository
from models import Exercise, ExerciseLog
from tools import DateLike, DateTools

logger = logging.getLogger(__name__)

UNKNOWN_EXERCISE = "Unknown exercise"


class LogCache:
    """Logged sets bucketed by day key.

    A key is present once its day has been fetched. A missing key means the
    day has not been fetched yet, not that it has no logs. Entries are never
    evicted; :meth:`clear` drops everything.
    """

    def __init__(
        self,
        repo: AsyncExerciseLogRepository,
        cache_empty_days: bool = False,
    ) -> None:
        self.repo = repo
        self.cache_empty_days = cache_empty_days
        self.logs: Dict[str, List[ExerciseLog]] = {}

    async def fetch(self, date: DateLike, force_fetch: bool = False) -> None:
        key = DateTools.day_key(date)
        if key in self.logs and not force_fetch:
            return
        fetched = await self.repo.fetch_for_day(date)
        if not fetched and not force_fetch and not self.cache_empty_days:
            return
        logger.debug("caching %d logs for %s", len(fetched), key)
        self.logs[key] = fetched

    def is_fetched(self, date: DateLike) -> bool:
        return DateTools.day_key(date) in self.logs

    def get(self, date: DateLike) -> Optional[List[ExerciseLog]]:
        return self.logs.get(DateTools.day_key(date))

    def logs_for(self, date: DateLike) -> List[ExerciseLog]:
        """Return the cached logs of the local day of ``date``, ``[]`` if unfetched."""
        key = DateTools.day_key(date)
        return [log for log in self.logs.get(key, []) if log.day_key == key]

    def dates_with_logs(self) -> List[str]:
        return [key for key, logs in self.logs.items() if logs]

    def clear(self) -> None:
        self.logs.clear()


class ExerciseCatalogCache:
    """In-memory copy of the whole exercise table, refreshed wholesale."""

    def __init__(self, repo: AsyncExerciseRepository) -> None:
        self.repo = repo
        self.exercises: List[Exercise] = []

    async def fetch_all(self) -> List[Exercise]:
        self.exercises = await self.repo.fetch_all_exercises()
        return self.exercises

    def get(self, exercise_id: int) -> Optional[Exercise]:
        for exercise in self.exercises:
            if exercise.id == exercise_id:
                return exercise
        return None

    def name_for(self, exercise_id: int) -> str:
        exercise = self.get(exercise_id)
        return exercise.name if exercise else UNKNOWN_EXERCISE

    def search(self, query: str, limit: int | None = None) -> List[Exercise]:
        """Case-insensitive substring match in catalog order."""
        needle = query.lower()
        matches = [e for e in self.exercises if needle in e.name.lower()]
        return matches[:limit] if limit is not None else matches

    def clear(self) -> None:
        self.exercises = []
