from __future__ import annotations

import datetime
import logging
from typing import List, Optional, Union

from cache_service import ExerciseCatalogCache, LogCache
from db import AsyncDatabase, AsyncExerciseLogRepository, AsyncExerciseRepository
from models import Exercise, ExerciseLog
from tools import DateLike, DateTools, LogInputParser
from week_service import WeekWindowManager

logger = logging.getLogger(__name__)


class WorkoutLogService:
    """Owns the store, the caches and the week selector of one app session.

    Every mutation resyncs the affected cache before returning: log mutations
    force-fetch the day they touched and return its day key, catalog
    mutations reload the whole catalog.
    """

    def __init__(
        self,
        db_path: str = "workouts.db",
        *,
        cache_empty_days: bool = False,
        today: Optional[DateLike] = None,
    ) -> None:
        self.db = AsyncDatabase(db_path)
        self.exercises = AsyncExerciseRepository(self.db)
        self.logs = AsyncExerciseLogRepository(self.db)
        self.log_cache = LogCache(self.logs, cache_empty_days)
        self.catalog = ExerciseCatalogCache(self.exercises)
        self.today = DateTools.to_day(today or datetime.date.today())
        self.selected_date = self.today
        self.weeks = WeekWindowManager(self.today, self.log_cache)

    @property
    def ready(self) -> bool:
        return self.db.initialized

    @property
    def error(self) -> Optional[str]:
        return self.db.error

    async def start(self) -> bool:
        """Create the schema and warm the caches for today's week."""
        if not await self.db.initialize():
            return False
        await self.catalog.fetch_all()
        await self.log_cache.fetch(self.today, force_fetch=True)
        await self.weeks.load()
        return True

    def reset(self) -> None:
        self.log_cache.clear()
        self.catalog.clear()
        self.selected_date = self.today
        self.weeks.reset(self.today)

    # Queries straight from storage

    async def get_logs_by_date(self, date: DateLike) -> List[ExerciseLog]:
        return await self.logs.fetch_for_day(date)

    async def get_exercises(self) -> List[Exercise]:
        return await self.exercises.fetch_all_exercises()

    async def get_exercise_by_id(self, exercise_id: int) -> Optional[Exercise]:
        return await self.exercises.fetch_detail(exercise_id)

    async def fetch_logs_by_date(
        self, date: DateLike, force_fetch: bool = False
    ) -> List[ExerciseLog]:
        await self.log_cache.fetch(date, force_fetch)
        return self.log_cache.logs_for(date)

    # Log mutations

    async def add_exercise_log(
        self,
        exercise_id: Optional[int],
        weight: Union[str, float],
        reps: Union[str, int],
        date: Optional[DateLike] = None,
    ) -> str:
        exercise_id, weight, reps = LogInputParser.parse(exercise_id, weight, reps)
        if date is None:
            date = self.selected_date
        if isinstance(date, int):
            date = DateTools.from_millis(date)
        elif not isinstance(date, datetime.datetime):
            date = DateTools.at_day(date)
        logger.debug("add log exercise=%s weight=%s reps=%s at %s", exercise_id, weight, reps, date)
        await self.logs.add(exercise_id, date, weight, reps)
        await self.log_cache.fetch(date, force_fetch=True)
        return DateTools.day_key(date)

    async def _existing_log(self, log_id: int) -> ExerciseLog:
        log = await self.logs.fetch_detail(log_id)
        if log is None:
            raise LookupError(f"log {log_id} not found")
        return log

    async def edit_exercise_log(
        self, log_id: int, weight: Union[str, float], reps: Union[str, int]
    ) -> str:
        weight = LogInputParser.parse_weight(weight)
        reps = LogInputParser.parse_reps(reps)
        log = await self._existing_log(log_id)
        logger.debug("edit log %s weight=%s reps=%s", log_id, weight, reps)
        await self.logs.update(log_id, weight, reps)
        await self.log_cache.fetch(log.date, force_fetch=True)
        return log.day_key

    async def delete_exercise_log(self, log_id: int) -> str:
        log = await self._existing_log(log_id)
        logger.debug("delete log %s", log_id)
        await self.logs.remove(log_id)
        await self.log_cache.fetch(log.date, force_fetch=True)
        return log.day_key

    # Catalog mutations

    @staticmethod
    def _clean_name(name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValueError("exercise name is required")
        return name

    async def _existing_exercise(self, exercise_id: int) -> Exercise:
        exercise = await self.exercises.fetch_detail(exercise_id)
        if exercise is None:
            raise LookupError(f"exercise {exercise_id} not found")
        return exercise

    async def add_exercise(self, name: str) -> int:
        name = self._clean_name(name)
        logger.debug("add exercise %s", name)
        exercise_id = await self.exercises.add(name)
        await self.catalog.fetch_all()
        return exercise_id

    async def edit_exercise(self, exercise_id: int, name: str) -> None:
        name = self._clean_name(name)
        await self._existing_exercise(exercise_id)
        logger.debug("rename exercise %s to %s", exercise_id, name)
        await self.exercises.update_name(exercise_id, name)
        await self.catalog.fetch_all()

    async def delete_exercise(self, exercise_id: int) -> None:
        await self._existing_exercise(exercise_id)
        logger.debug("delete exercise %s", exercise_id)
        await self.exercises.remove(exercise_id)
        await self.catalog.fetch_all()

    # Day and week navigation

    async def select_date(self, date: DateLike) -> None:
        self.selected_date = DateTools.to_day(date)
        await self.weeks.jump_to(self.selected_date)
        await self.log_cache.fetch(self.selected_date)

    async def change_day(self, days: int) -> None:
        """Step the selected day by ``days``; ``0`` returns to today."""
        if days == 0:
            await self.select_date(self.today)
        else:
            await self.select_date(DateTools.shift_days(self.selected_date, days))

    async def page_week(self, direction: int) -> None:
        await self.weeks.page_week(direction)

    def is_today(self) -> bool:
        return self.selected_date == self.today

    def logs_for_selected_date(self) -> List[ExerciseLog]:
        return self.log_cache.logs_for(self.selected_date)

    def dates_with_logs(self) -> List[str]:
        return self.log_cache.dates_with_logs()
