from datetime import date, datetime, time, timedelta
from typing import Tuple
from tortoise import timezone
from cafe_pos.core.config import TIMEZONE


def as_aware(value: datetime) -> datetime:
    """Attaches the configured time zone to a naive datetime; aware values pass through."""
    if timezone.is_naive(value):
        return timezone.make_aware(value, TIMEZONE)
    return value


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """Half-open [start, end) of a calendar day in the configured time zone."""
    start = timezone.make_aware(datetime.combine(day, time.min), TIMEZONE)
    return start, start + timedelta(days=1)
