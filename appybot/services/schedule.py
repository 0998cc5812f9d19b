"""Weekly open/close gate for applications."""
from __future__ import annotations

import enum
import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

from .storage import ApplicationStore


LOGGER = logging.getLogger(__name__)


class GateState(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class ScheduleGate:
    """Owns the open/closed state and clears the applied list once per window.

    The window starts on ``open_weekday`` at ``open_hour`` and ends on
    ``close_weekday`` at ``close_hour``, both in a fixed UTC offset with no
    daylight-saving adjustment. Weekdays follow :meth:`datetime.weekday`
    (Monday is 0, Sunday is 6).
    """

    def __init__(
        self,
        store: ApplicationStore,
        *,
        utc_offset_hours: float = -5,
        open_weekday: int = 6,
        open_hour: int = 0,
        close_weekday: int = 0,
        close_hour: int = 23,
    ) -> None:
        self.store = store
        self.tz: tzinfo = timezone(timedelta(hours=utc_offset_hours))
        self.open_weekday = open_weekday
        self.open_hour = open_hour
        self.close_weekday = close_weekday
        self.close_hour = close_hour
        self._state = GateState.CLOSED

        days = (close_weekday - open_weekday) % 7
        length = timedelta(days=days, hours=close_hour - open_hour)
        if length <= timedelta(0):
            length += timedelta(days=7)
        self._length = length

    @property
    def state(self) -> GateState:
        return self._state

    def is_open(self) -> bool:
        return self._state is GateState.OPEN

    def localize(self, now: Optional[datetime] = None) -> datetime:
        moment = now or datetime.now(timezone.utc)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(self.tz)

    def window_start(self, now: Optional[datetime] = None) -> Optional[datetime]:
        local = self.localize(now)
        start = local.replace(hour=self.open_hour, minute=0, second=0, microsecond=0)
        start -= timedelta(days=(local.weekday() - self.open_weekday) % 7)
        if start > local:
            start -= timedelta(days=7)
        if local < start + self._length:
            return start
        return None

    def evaluate(self, now: Optional[datetime] = None) -> GateState:
        return GateState.OPEN if self.window_start(now) is not None else GateState.CLOSED

    async def tick(self, now: Optional[datetime] = None) -> GateState:
        start = self.window_start(now)
        previous = self._state
        self._state = GateState.OPEN if start is not None else GateState.CLOSED

        if start is not None:
            last_reset = self.store.last_reset
            if last_reset is None or last_reset < start:
                await self.store.reset(start)

        if self._state is not previous:
            event = "applications_opened" if self.is_open() else "applications_closed"
            LOGGER.info(event, extra={"window_start": start.isoformat() if start else None})
        return self._state
