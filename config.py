import os
import yaml

from settings_schema import SettingsSchema, validate_settings

APP_VERSION = "1.0.0"


class YamlConfig:
    """Load and save settings to a YAML file."""

    ENV_OVERRIDES = {
        "db_path": "WORKOUT_DB",
        "log_level": "WORKOUT_LOG_LEVEL",
    }

    def __init__(self, path: str = "settings.yaml") -> None:
        self.path = path

    def load(self) -> dict:
        data: dict = {}
        if os.path.exists(self.path):
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        for key, env in self.ENV_OVERRIDES.items():
            value = os.environ.get(env)
            if value:
                data[key] = value
        return data

    def save(self, data: dict) -> None:
        validate_settings(data)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(dict(data), f)

    def settings(self) -> SettingsSchema:
        """Return the validated settings with defaults filled in."""
        data = self.load()
        validate_settings(data)
        return SettingsSchema(**data)
