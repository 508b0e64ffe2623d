from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone as dt_timezone

import pytz
from flask import current_app, has_app_context

DEFAULT_PLANT_TIMEZONE = "Europe/Prague"


class TimezoneUtils:
    @staticmethod
    def utc_now() -> datetime:
        """Return the current UTC timestamp (timezone aware)."""
        return datetime.now(dt_timezone.utc)

    @staticmethod
    def plant_timezone_name() -> str:
        if has_app_context():
            return current_app.config.get("PLANT_TIMEZONE") or DEFAULT_PLANT_TIMEZONE
        return DEFAULT_PLANT_TIMEZONE

    @staticmethod
    def get_timezone(name: str | None = None):
        try:
            return pytz.timezone(name or TimezoneUtils.plant_timezone_name())
        except pytz.UnknownTimeZoneError:
            return pytz.timezone(DEFAULT_PLANT_TIMEZONE)

    @staticmethod
    def ensure_aware(value: datetime) -> datetime:
        """Treat naive datetimes as UTC, which is how they are persisted."""
        if value.tzinfo is None:
            return pytz.utc.localize(value)
        return value

    @staticmethod
    def to_plant_time(value: datetime, tz_name: str | None = None) -> datetime:
        return TimezoneUtils.ensure_aware(value).astimezone(TimezoneUtils.get_timezone(tz_name))


class Clock(ABC):
    """Source of "now" for services so date-derived values stay testable."""

    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone aware (UTC)."""

    def today(self) -> date:
        """Calendar date at the plant."""
        return TimezoneUtils.to_plant_time(self.now(), self.timezone_name).date()

    @property
    def timezone_name(self) -> str:
        return TimezoneUtils.plant_timezone_name()


class SystemClock(Clock):
    def __init__(self, timezone_name: str | None = None):
        self._timezone_name = timezone_name

    def now(self) -> datetime:
        return TimezoneUtils.utc_now()

    @property
    def timezone_name(self) -> str:
        return self._timezone_name or TimezoneUtils.plant_timezone_name()


class FixedClock(Clock):
    def __init__(self, instant: datetime, timezone_name: str = DEFAULT_PLANT_TIMEZONE):
        self._instant = TimezoneUtils.ensure_aware(instant)
        self._timezone_name = timezone_name

    def now(self) -> datetime:
        return self._instant

    @property
    def timezone_name(self) -> str:
        return self._timezone_name

    def advance_to(self, instant: datetime) -> None:
        self._instant = TimezoneUtils.ensure_aware(instant)
