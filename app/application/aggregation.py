"""Time windows for aggregation queries."""

import math
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from app.domain.errors import InvalidDateFormatError, InvalidDateRangeError

DEFAULT_WINDOW_DAYS = 30


@dataclass(frozen=True)
class AggregationWindow:
    """Inclusive [start, end] bounds, both timezone-aware UTC."""

    start: datetime
    end: datetime

    @property
    def total_days(self) -> int:
        return math.ceil((self.end - self.start) / timedelta(days=1))


def _parse_bound(raw: str, field: str, end_of_day: bool) -> datetime:
    value = raw.strip()
    try:
        if len(value) == 10:
            day = date.fromisoformat(value)
            parsed = datetime.combine(day, time.max if end_of_day else time.min)
        else:
            parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        # Offsets near year 1 or 9999 leave the representable range
        return parsed.astimezone(UTC)
    except (ValueError, OverflowError) as e:
        raise InvalidDateFormatError(details={"field": field, "value": raw}) from e


def parse_window(
    raw_start: str | None,
    raw_end: str | None,
    now: datetime | None = None,
    default_days: int = DEFAULT_WINDOW_DAYS,
) -> AggregationWindow:
    """Parse ISO 8601 bounds into a window.

    Missing bounds default to [now - default_days, now]. A date-only end
    bound covers that whole day.

    Raises:
        InvalidDateFormatError: A bound is not ISO 8601
        InvalidDateRangeError: start is after end
    """
    now = now or datetime.now(UTC)
    start = (
        _parse_bound(raw_start, "startDate", end_of_day=False)
        if raw_start
        else now - timedelta(days=default_days)
    )
    end = _parse_bound(raw_end, "endDate", end_of_day=True) if raw_end else now

    if start > end:
        raise InvalidDateRangeError(
            details={"startDate": start.isoformat(), "endDate": end.isoformat()}
        )
    return AggregationWindow(start=start, end=end)
