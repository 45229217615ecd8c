import datetime
from typing import Optional

import requests


class WorkoutLogClient:
    """Simple REST client for the workout log API."""

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, **params):
        resp = requests.request(
            method,
            f"{self.base_url}{path}",
            params={k: v for k, v in params.items() if v is not None},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def status(self) -> dict:
        return self._request("GET", "/status")

    def list_exercises(self, search: Optional[str] = None) -> list:
        return self._request("GET", "/exercises", search=search)

    def add_exercise(self, name: str) -> int:
        return self._request("POST", "/exercises", name=name)["id"]

    def rename_exercise(self, exercise_id: int, name: str) -> None:
        self._request("PUT", f"/exercises/{exercise_id}", name=name)

    def delete_exercise(self, exercise_id: int) -> None:
        self._request("DELETE", f"/exercises/{exercise_id}")

    def logs_for(self, date: datetime.date, force: bool = False) -> list:
        return self._request("GET", "/logs", date=date.isoformat(), force=force)["logs"]

    def add_log(
        self,
        exercise_id: int,
        weight: float,
        reps: int,
        date: Optional[datetime.datetime] = None,
    ) -> str:
        return self._request(
            "POST",
            "/logs",
            exercise_id=exercise_id,
            weight=weight,
            reps=reps,
            date=date.isoformat() if date else None,
        )["day"]

    def edit_log(self, log_id: int, weight: float, reps: int) -> str:
        return self._request("PUT", f"/logs/{log_id}", weight=weight, reps=reps)["day"]

    def delete_log(self, log_id: int) -> str:
        return self._request("DELETE", f"/logs/{log_id}")["day"]

    def week(self) -> dict:
        return self._request("GET", "/week")

    def page_week(self, direction: int) -> dict:
        return self._request("POST", "/week/page", direction=direction)
