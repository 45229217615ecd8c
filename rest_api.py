import datetime
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException

from config import YamlConfig
from db import StoreNotInitializedError
from models import ExerciseLog
from tools import DateTools
from workout_service import WorkoutLogService

logger = logging.getLogger(__name__)


class WorkoutLogAPI:
    """Provides REST endpoints for workout logging.

    The store is initialized in the application lifespan, so clients must
    enter the app (``with TestClient(api.app)``) before it becomes ready.
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        yaml_path: str = "settings.yaml",
        *,
        today: Optional[datetime.date] = None,
    ) -> None:
        self.config = YamlConfig(yaml_path)
        settings = self.config.settings()
        self.service = WorkoutLogService(
            db_path or settings.db_path,
            cache_empty_days=settings.cache_empty_days,
            today=today,
        )
        self.app = FastAPI(
            title="Workout Log API",
            description="REST API for logging sets and browsing them by week",
            lifespan=self._lifespan,
        )
        self._setup_routes()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        if not await self.service.start():
            logger.error("Store unavailable: %s", self.service.error)
        yield
        self.service.reset()

    async def _call(self, awaitable):
        try:
            return await awaitable
        except StoreNotInitializedError as e:
            raise HTTPException(status_code=503, detail=str(e))
        except LookupError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    def _require_ready(self) -> None:
        if not self.service.ready:
            raise HTTPException(
                status_code=503, detail=self.service.error or "Database not initialized"
            )

    def _log_payload(self, log: ExerciseLog) -> dict:
        data = log.model_dump(by_alias=True)
        data["exercise"] = self.service.catalog.name_for(log.exercise_id)
        return data

    def _day_payload(self, date: datetime.date) -> dict:
        return {
            "date": DateTools.day_key(date),
            "fetched": self.service.log_cache.is_fetched(date),
            "logs": [self._log_payload(log) for log in self.service.log_cache.logs_for(date)],
        }

    def _week_payload(self) -> dict:
        weeks = self.service.weeks
        with_logs = set(self.service.dates_with_logs())
        return {
            "base_date": weeks.base_date.isoformat(),
            "selected_date": self.service.selected_date.isoformat(),
            "days": [
                {
                    "date": day.isoformat(),
                    "label": label,
                    "is_base": weeks.is_base_date(day),
                    "selected": day == self.service.selected_date,
                    "has_logs": day.isoformat() in with_logs,
                }
                for label, day in weeks.labels()
            ],
        }

    def _setup_routes(self) -> None:
        @self.app.get("/status")
        def status():
            return {"ready": self.service.ready, "error": self.service.error}

        @self.app.get("/exercises")
        def list_exercises(search: Optional[str] = None):
            self._require_ready()
            if search:
                return self.service.catalog.search(search)
            return self.service.catalog.exercises

        @self.app.post("/exercises")
        async def add_exercise(name: str):
            exercise_id = await self._call(self.service.add_exercise(name))
            return {"id": exercise_id}

        @self.app.get("/exercises/{exercise_id}")
        async def get_exercise(exercise_id: int):
            exercise = await self._call(self.service.get_exercise_by_id(exercise_id))
            if exercise is None:
                raise HTTPException(status_code=404, detail="not found")
            return exercise

        @self.app.put("/exercises/{exercise_id}")
        async def rename_exercise(exercise_id: int, name: str):
            await self._call(self.service.edit_exercise(exercise_id, name))
            return {"status": "updated"}

        @self.app.delete("/exercises/{exercise_id}")
        async def delete_exercise(exercise_id: int):
            await self._call(self.service.delete_exercise(exercise_id))
            return {"status": "deleted"}

        @self.app.get("/logs")
        async def get_logs(date: Optional[datetime.date] = None, force: bool = False):
            day = date or self.service.selected_date
            await self._call(self.service.fetch_logs_by_date(day, force))
            return self._day_payload(day)

        @self.app.post("/logs")
        async def add_log(
            exercise_id: int,
            weight: str,
            reps: str,
            date: Optional[datetime.datetime] = None,
        ):
            key = await self._call(
                self.service.add_exercise_log(exercise_id, weight, reps, date)
            )
            return {"day": key}

        @self.app.put("/logs/{log_id}")
        async def edit_log(log_id: int, weight: str, reps: str):
            key = await self._call(self.service.edit_exercise_log(log_id, weight, reps))
            return {"day": key}

        @self.app.delete("/logs/{log_id}")
        async def delete_log(log_id: int):
            key = await self._call(self.service.delete_exercise_log(log_id))
            return {"day": key}

        @self.app.post("/day")
        async def select_day(
            date: Optional[datetime.date] = None, offset: Optional[int] = None
        ):
            if date is not None:
                await self._call(self.service.select_date(date))
            elif offset is not None:
                await self._call(self.service.change_day(offset))
            payload = self._day_payload(self.service.selected_date)
            payload["is_today"] = self.service.is_today()
            return payload

        @self.app.get("/week")
        def get_week():
            return self._week_payload()

        @self.app.post("/week/page")
        async def page_week(direction: int):
            self._require_ready()
            await self._call(self.service.page_week(direction))
            return self._week_payload()

        @self.app.post("/week/jump")
        async def jump_week(date: datetime.date):
            self._require_ready()
            await self._call(self.service.weeks.jump_to(date))
            return self._week_payload()


def create_app(yaml_path: str = "settings.yaml") -> FastAPI:
    return WorkoutLogAPI(yaml_path=yaml_path).app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app())
