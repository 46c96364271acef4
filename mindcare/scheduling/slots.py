"""Slot grid generation and instant normalisation.

Everything here is a pure function of its arguments. Callers pass ``now``
explicitly so the grid can be computed for any point in time.
"""

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from mindcare.core import config

FIRST_SLOT_HOUR = 9
LAST_SLOT_HOUR = 17
DATE_KEY_FORMAT = '%d.%m.%Y'

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def schedule_timezone() -> ZoneInfo:
    return ZoneInfo(config.SCHEDULE_TIMEZONE)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime. Naive values are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def instant_key(value: datetime) -> int:
    """Canonical key for equality checks between instants: UTC epoch milliseconds."""
    return (as_utc(value) - _EPOCH) // timedelta(milliseconds=1)


def to_iso(value: datetime) -> str:
    return as_utc(value).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def date_key(value: datetime, tz: ZoneInfo | None = None) -> str:
    return as_utc(value).astimezone(tz or schedule_timezone()).strftime(DATE_KEY_FORMAT)


def is_business_day(day: date) -> bool:
    return day.weekday() < 5


def iterate_day_slots(day: date, tz: ZoneInfo) -> list[datetime]:
    return [
        datetime.combine(day, time(hour, 0), tzinfo=tz).astimezone(timezone.utc)
        for hour in range(FIRST_SLOT_HOUR, LAST_SLOT_HOUR + 1)
    ]


def generate_available_slots(
    now: datetime,
    window_days: int | None = None,
    lead_time_minutes: int | None = None,
    tz: ZoneInfo | None = None,
) -> list[datetime]:
    """Build the bookable grid from today through ``now + window_days``.

    One slot per hour from 09:00 to 17:00 on every weekday in the schedule
    timezone, dropping slots that start less than the lead time after ``now``.
    """
    tz = tz or schedule_timezone()
    window_days = config.BOOKING_WINDOW_DAYS if window_days is None else window_days
    lead_time_minutes = config.BOOKING_LEAD_TIME_MINUTES if lead_time_minutes is None else lead_time_minutes

    local_now = as_utc(now).astimezone(tz)
    earliest_start = as_utc(now) + timedelta(minutes=lead_time_minutes)
    last_day = (local_now + timedelta(days=window_days)).date()

    slots: list[datetime] = []
    current_day = local_now.date()
    while current_day <= last_day:
        if is_business_day(current_day):
            slots.extend(slot for slot in iterate_day_slots(current_day, tz) if slot >= earliest_start)
        current_day += timedelta(days=1)

    return slots


def is_grid_slot(value: datetime, now: datetime, window_days: int | None = None, tz: ZoneInfo | None = None) -> bool:
    """Whether ``value`` is a slot start the generator could produce for ``now``, ignoring lead time."""
    tz = tz or schedule_timezone()
    window_days = config.BOOKING_WINDOW_DAYS if window_days is None else window_days

    local_value = as_utc(value).astimezone(tz)
    last_day = (as_utc(now).astimezone(tz) + timedelta(days=window_days)).date()

    return (
        is_business_day(local_value.date())
        and FIRST_SLOT_HOUR <= local_value.hour <= LAST_SLOT_HOUR
        and local_value.minute == 0
        and local_value.second == 0
        and local_value.microsecond == 0
        and local_value.date() <= last_day
    )


def remove_booked_slots(slots: Iterable[datetime], booked: Iterable[datetime]) -> list[datetime]:
    booked_keys = {instant_key(booked_start) for booked_start in booked}
    return [slot for slot in slots if instant_key(slot) not in booked_keys]


def group_by_date(values: Iterable[datetime], tz: ZoneInfo | None = None) -> dict[str, list[datetime]]:
    tz = tz or schedule_timezone()
    grouped: dict[str, list[datetime]] = {}
    for value in values:
        grouped.setdefault(date_key(value, tz), []).append(value)
    return grouped
