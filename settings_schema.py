from typing import Literal

from pydantic import BaseModel, ValidationError


class SettingsSchema(BaseModel):
    db_path: str = "workouts.db"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    cache_empty_days: bool = False


def validate_settings(data: dict) -> None:
    try:
        SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
