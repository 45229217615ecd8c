import datetime

from pydantic import BaseModel, ConfigDict, Field

from tools import DateTools


class Exercise(BaseModel):
    id: int
    name: str


class ExerciseLog(BaseModel):
    """One logged set. ``date`` is an epoch timestamp in milliseconds."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    exercise_id: int = Field(alias="exerciseId")
    date: int
    weight: float
    reps: int

    @property
    def day_key(self) -> str:
        return DateTools.day_key(self.date)

    @property
    def logged_at(self) -> datetime.datetime:
        return DateTools.from_millis(self.date)
