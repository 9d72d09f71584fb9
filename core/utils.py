# core/utils.py

import logging
import re
from datetime import date, datetime, time, timedelta
from functools import wraps

from django.conf import settings
from django.db import InterfaceError, OperationalError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .constants import TIME_PATTERN
from .exceptions import ValidationError

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(TIME_PATTERN)

SCHEDULING_DEFAULTS = {
    'DEFAULT_SLOT_DURATION': 30,
    'DEFAULT_BREAK': ('13:00', '14:00'),
    'DEFAULT_MAX_OCCUPANCY': 1,
    'MAX_OCCUPANCY_LIMIT': 10,
    'READ_RETRY_ATTEMPTS': 2,
    'READ_RETRY_BACKOFF': 0.2,
}


def scheduling_setting(name):
    """Read a key from settings.SCHEDULING, falling back to the engine defaults"""
    return getattr(settings, 'SCHEDULING', {}).get(name, SCHEDULING_DEFAULTS[name])


def parse_time(value, field='time'):
    """
    Parse a 24h "HH:MM" wall-clock string into datetime.time.
    datetime.time instances are passed through.
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str) or not _TIME_RE.match(value.strip()):
        raise ValidationError({field: f"'{value}' is not a valid HH:MM time"})
    hours, minutes = value.strip().split(':')
    return time(int(hours), int(minutes))


def parse_date(value, field='date'):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value), '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError({field: 'Invalid date format. Use YYYY-MM-DD'})


def format_time(value):
    return value.strftime('%H:%M')


def to_minutes(value):
    return value.hour * 60 + value.minute


def from_minutes(minutes):
    return time(minutes // 60, minutes % 60)


def add_minutes(value, minutes):
    return (datetime.combine(datetime.min, value) + timedelta(minutes=minutes)).time()


def read_retry(func):
    """
    Retry an idempotent storage read once (by default) with exponential backoff
    on connectivity faults. Never apply to writes.
    """
    @wraps(func)
    def _wrapper(*args, **kwargs):
        retrying = retry(
            retry=retry_if_exception_type((OperationalError, InterfaceError)),
            stop=stop_after_attempt(scheduling_setting('READ_RETRY_ATTEMPTS')),
            wait=wait_exponential(multiplier=scheduling_setting('READ_RETRY_BACKOFF'), max=2),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retrying(func)(*args, **kwargs)

    return _wrapper
