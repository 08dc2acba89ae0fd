"""
Date normalizer - turns stored date values into calendar dates.

Stage data stores dates as ISO strings entered through date pickers, but
legacy records and imports also carry datetimes, `YYYY/MM/DD` and
`YYYY.MM.DD` strings. Everything in the engine compares calendar days, so
values are reduced to `datetime.date` in the configured local timezone
(midnight normalization) before any arithmetic.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .engine_config import EngineSettings

logger = logging.getLogger(__name__)

_ISO_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")
_ALT_FORMATS = ("%Y/%m/%d", "%Y.%m.%d")


def is_blank(value: Any) -> bool:
    """True for None, False, empty and whitespace-only values."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (date, datetime)):
        return False
    return str(value).strip() == "" or not value


def local_timezone(name: Optional[str] = None) -> Optional[tzinfo]:
    tz_name = name or EngineSettings.get_config().timezone
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{tz_name}', using system local time")
        return None


def parse_date(value: Any, tz: Optional[tzinfo] = None) -> Optional[date]:
    """
    Parse a stored date value to a calendar date.

    Aware datetimes are converted to the local timezone first; naive values
    are taken as already local. Returns None when the value is blank or does
    not describe a valid calendar date.
    """
    if is_blank(value):
        return None

    if isinstance(value, datetime):
        return _to_local_date(value, tz)
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if _ISO_PREFIX.match(text):
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        if len(text) == 10:
            return parsed.date()
        return _to_local_date(parsed, tz)

    for fmt in _ALT_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def normalize_to_midnight(value: Any, tz: Optional[tzinfo] = None) -> Optional[date]:
    """
    Drop the time-of-day component of a date-like value.

    `datetime.date` carries no time, so the normalized form of any
    date/datetime/string is its local calendar date.
    """
    return parse_date(value, tz)


def today_local(tz: Optional[tzinfo] = None) -> date:
    zone = tz or local_timezone()
    return datetime.now(zone).date() if zone else date.today()


def _to_local_date(value: datetime, tz: Optional[tzinfo]) -> date:
    if value.tzinfo is None:
        return value.date()
    zone = tz or local_timezone()
    return value.astimezone(zone).date() if zone else value.astimezone().date()
