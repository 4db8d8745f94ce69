from __future__ import annotations

from datetime import date, datetime, timezone as dt_timezone

import pytz

DEFAULT_TIMEZONE = "UTC"


class TimezoneUtils:
    """Utilities for consistent timezone handling across the application."""

    @staticmethod
    def validate_timezone(tz_name: str | None) -> bool:
        """Return True when the timezone string exists in pytz."""
        return bool(tz_name) and tz_name in pytz.all_timezones_set

    @staticmethod
    def _get_timezone(tz_name: str):
        if not TimezoneUtils.validate_timezone(tz_name):
            raise ValueError(f"Invalid timezone: {tz_name}")
        return pytz.timezone(tz_name)

    @staticmethod
    def utc_now() -> datetime:
        """Return the current UTC timestamp (timezone aware)."""
        return datetime.now(dt_timezone.utc)

    @staticmethod
    def ensure_timezone_aware(
        dt: datetime | None, assume_utc: bool = True
    ) -> datetime | None:
        """Guarantee that a datetime carries timezone information."""
        if dt is None:
            return None
        if dt.tzinfo is None:
            if not assume_utc:
                raise ValueError("Naive datetime provided without explicit timezone handling.")
            return dt.replace(tzinfo=dt_timezone.utc)
        return dt

    @staticmethod
    def convert_to_timezone(
        dt: datetime | None, to_timezone: str, assume_utc: bool = True
    ) -> datetime | None:
        """Convert a datetime into the target timezone, assuming UTC for naive values."""
        if dt is None:
            return None
        target = TimezoneUtils._get_timezone(to_timezone)
        aware = TimezoneUtils.ensure_timezone_aware(dt, assume_utc=assume_utc)
        return aware.astimezone(target)

    @staticmethod
    def local_date(dt: datetime, tz_name: str = DEFAULT_TIMEZONE) -> date:
        """Calendar date of ``dt`` as observed in ``tz_name``."""
        return TimezoneUtils.convert_to_timezone(dt, tz_name).date()
