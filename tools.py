import datetime
import math
from typing import List, Tuple, Union

DateLike = Union[datetime.date, datetime.datetime, int]


class DateTools:
    """Calendar helpers shared by the caches and the week selector.

    All conversions use local time. Timestamps are epoch milliseconds as
    stored in the ``workouts.date`` column.
    """

    DAYS_PER_WEEK: int = 7
    DAY_NAMES: Tuple[str, ...] = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

    @staticmethod
    def to_day(value: DateLike) -> datetime.date:
        """Return the local calendar day of ``value``."""
        if isinstance(value, datetime.datetime):
            if value.tzinfo is not None:
                value = value.astimezone()
            return value.date()
        if isinstance(value, datetime.date):
            return value
        if isinstance(value, int):
            return DateTools.from_millis(value).date()
        raise TypeError(f"unsupported date value: {value!r}")

    @staticmethod
    def to_millis(value: datetime.datetime) -> int:
        return int(round(value.timestamp() * 1000))

    @staticmethod
    def from_millis(millis: int) -> datetime.datetime:
        return datetime.datetime.fromtimestamp(millis / 1000)

    @staticmethod
    def day_key(value: DateLike) -> str:
        """Return the ``YYYY-MM-DD`` key of the local day containing ``value``."""
        return DateTools.to_day(value).isoformat()

    @staticmethod
    def day_bounds(value: DateLike) -> Tuple[int, int]:
        """Return the first and last millisecond of the local day of ``value``."""
        day = DateTools.to_day(value)
        start = datetime.datetime.combine(day, datetime.time.min)
        end = datetime.datetime.combine(day, datetime.time(23, 59, 59, 999000))
        return DateTools.to_millis(start), DateTools.to_millis(end)

    @staticmethod
    def start_of_week(value: DateLike) -> datetime.date:
        """Return the Monday at or before ``value``."""
        day = DateTools.to_day(value)
        return day - datetime.timedelta(days=day.isoweekday() - 1)

    @classmethod
    def week_days(cls, start: datetime.date) -> List[datetime.date]:
        return [start + datetime.timedelta(days=i) for i in range(cls.DAYS_PER_WEEK)]

    @staticmethod
    def shift_days(value: DateLike, days: int) -> datetime.date:
        return DateTools.to_day(value) + datetime.timedelta(days=days)

    @staticmethod
    def at_day(day: datetime.date, clock: datetime.datetime | None = None) -> datetime.datetime:
        """Return ``day`` combined with the time of ``clock`` (default: now)."""
        clock = clock or datetime.datetime.now()
        return datetime.datetime.combine(day, clock.time())


class LogInputParser:
    """Validation of raw log form input before it reaches storage."""

    @staticmethod
    def parse_weight(raw: Union[str, float, int]) -> float:
        """Parse a weight, accepting a comma as decimal separator."""
        if isinstance(raw, str):
            text = raw.strip().replace(",", ".")
            if not text:
                raise ValueError("weight is required")
            try:
                value = float(text)
            except ValueError:
                raise ValueError(f"weight must be numeric, got {raw!r}")
        else:
            value = float(raw)
        if not math.isfinite(value):
            raise ValueError(f"weight must be finite, got {raw!r}")
        if value <= 0:
            raise ValueError("weight must be positive")
        return value

    @staticmethod
    def parse_reps(raw: Union[str, int]) -> int:
        if isinstance(raw, str):
            text = raw.strip()
            if not text:
                raise ValueError("reps is required")
            try:
                value = int(text)
            except ValueError:
                raise ValueError(f"reps must be an integer, got {raw!r}")
        else:
            value = int(raw)
        if value <= 0:
            raise ValueError("reps must be positive")
        return value

    @classmethod
    def parse(
        cls,
        exercise_id: int | None,
        weight: Union[str, float, int],
        reps: Union[str, int],
    ) -> Tuple[int, float, int]:
        """Return ``(exercise_id, weight, reps)`` or raise ``ValueError``."""
        if exercise_id is None:
            raise ValueError("an exercise must be selected")
        return int(exercise_id), cls.parse_weight(weight), cls.parse_reps(reps)
