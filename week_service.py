from __future__ import annotations

import bisect
import datetime
import logging
from typing import List, Optional, Tuple

from cache_service import LogCache
from tools import DateLike, DateTools

logger = logging.getLogger(__name__)


class WeekWindowManager:
    """Week selector state: cached 7-day windows and the one in view.

    Windows are Monday-first and kept sorted by start date, so a start date
    appears at most once and ``viewport_index`` always points at a window.
    Whenever the days in view change, each of them is fetched into the
    attached :class:`LogCache` (non-forced).
    """

    PAGE_REFERENCE_OFFSET = 3

    def __init__(self, base_date: DateLike, log_cache: LogCache | None = None) -> None:
        self.log_cache = log_cache
        self.base_date = DateTools.to_day(base_date)
        self.windows: List[List[datetime.date]] = []
        self.viewport_index = 0
        self.reset()

    def reset(self, base_date: Optional[DateLike] = None) -> None:
        if base_date is not None:
            self.base_date = DateTools.to_day(base_date)
        start = DateTools.start_of_week(self.base_date)
        self.windows = [DateTools.week_days(start)]
        self.viewport_index = 0

    @property
    def starts(self) -> List[datetime.date]:
        return [window[0] for window in self.windows]

    @property
    def viewport(self) -> List[datetime.date]:
        return self.windows[self.viewport_index]

    @property
    def days_in_view(self) -> List[datetime.date]:
        return list(self.viewport)

    def labels(self) -> List[Tuple[str, datetime.date]]:
        return list(zip(DateTools.DAY_NAMES, self.viewport))

    def is_base_date(self, date: DateLike) -> bool:
        return DateTools.to_day(date) == self.base_date

    def in_view(self, date: DateLike) -> bool:
        return DateTools.to_day(date) in self.viewport

    def contains(self, date: DateLike) -> bool:
        return self._index_of(DateTools.start_of_week(date)) is not None

    def _index_of(self, start: datetime.date) -> Optional[int]:
        starts = self.starts
        i = bisect.bisect_left(starts, start)
        if i < len(starts) and starts[i] == start:
            return i
        return None

    def _window_for(self, start: datetime.date) -> int:
        index = self._index_of(start)
        if index is not None:
            return index
        index = bisect.bisect_left(self.starts, start)
        self.windows.insert(index, DateTools.week_days(start))
        logger.debug("added week %s at %d of %d", start, index, len(self.windows))
        return index

    def shift(self, direction: int) -> None:
        """Move the viewport one week back (-1) or forward (+1)."""
        if direction not in (-1, 1):
            raise ValueError("direction must be -1 or 1")
        edge = self.viewport[0] if direction < 0 else self.viewport[-1]
        reference = DateTools.shift_days(edge, self.PAGE_REFERENCE_OFFSET * direction)
        self.viewport_index = self._window_for(DateTools.start_of_week(reference))

    def show(self, date: DateLike) -> bool:
        """Bring the week of ``date`` into view. Return ``False`` if already shown."""
        if self.in_view(date):
            return False
        self.viewport_index = self._window_for(DateTools.start_of_week(date))
        return True

    async def fetch_viewport(self) -> None:
        if self.log_cache is None:
            return
        for day in self.viewport:
            await self.log_cache.fetch(day)

    async def load(self) -> None:
        await self.fetch_viewport()

    async def page_week(self, direction: int) -> None:
        self.shift(direction)
        await self.fetch_viewport()

    async def jump_to(self, date: DateLike) -> bool:
        changed = self.show(date)
        if changed:
            await self.fetch_viewport()
        return changed
