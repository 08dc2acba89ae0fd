"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    STAGETRACK — DEADLINE CLASSIFIER
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Signed day distance (D-Day) and status buckets for calendar events.

MODEL
═════

Both dates are reduced to local calendar days before subtracting, so the
time of day never shifts the result:

    d_day = (event_date − today)   in whole days        (negative = past)

    bucket = completed   if executed
             overdue     if d_day < 0
             today       if d_day = 0
             upcoming    otherwise

Upcoming events are further split by horizon (presentation only):

    imminent   d_day ≤ imminent_days   (default 7)
    soon       d_day ≤ soon_days       (default 30)
    future     beyond

Display and ranking:

    format_d_day       D-3 · D-Day · D+2 · 완료/Done
    deadline_priority  today 0, overdue |d_day|, upcoming d_day, completed 1000
                       (lower is more urgent)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from ..date_normalizer import normalize_to_midnight, today_local
from ..engine_config import EngineSettings, Language, resolve_language
from .event_extractor import Event

logger = logging.getLogger(__name__)

COMPLETED_PRIORITY = 1000
UNKNOWN_PRIORITY = 999


class DeadlineBucket(str, Enum):
    OVERDUE = "overdue"
    TODAY = "today"
    UPCOMING = "upcoming"
    COMPLETED = "completed"


class HorizonBucket(str, Enum):
    IMMINENT = "imminent"
    SOON = "soon"
    FUTURE = "future"


class Urgency(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NotificationType(str, Enum):
    OVERDUE = "overdue"
    TODAY = "today"
    URGENT = "urgent"
    REMINDER = "reminder"


_URGENCY_ORDER = {Urgency.HIGH: 0, Urgency.MEDIUM: 1, Urgency.LOW: 2}

_DONE_TEXT = {Language.KO: "완료", Language.EN: "Done"}


@dataclass(frozen=True)
class DeadlineStatus:
    d_day: int
    bucket: DeadlineBucket

    def to_dict(self) -> Dict[str, Any]:
        return {"dDay": self.d_day, "bucket": self.bucket.value}


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# CORE
# ════════════════════════════════════════════════════════════════════════════════════════════════════

def _resolve_today(today: Optional[Any]) -> date:
    if today is None:
        return today_local()
    normalized = normalize_to_midnight(today)
    if normalized is None:
        raise ValueError(f"Invalid reference date: {today!r}")
    return normalized


def compute_d_day(target: Any, today: Optional[Any] = None) -> Optional[int]:
    """Whole days from today to target; None when target is blank or unparseable."""
    target_day = normalize_to_midnight(target)
    if target_day is None:
        return None
    return (target_day - _resolve_today(today)).days


def classify_value(target: Any, is_executed: bool = False, today: Optional[Any] = None) -> Optional[DeadlineStatus]:
    """classify() for a raw date value; None if the value is not a date."""
    d_day = compute_d_day(target, today)
    if d_day is None:
        return None
    if is_executed:
        bucket = DeadlineBucket.COMPLETED
    elif d_day < 0:
        bucket = DeadlineBucket.OVERDUE
    elif d_day == 0:
        bucket = DeadlineBucket.TODAY
    else:
        bucket = DeadlineBucket.UPCOMING
    return DeadlineStatus(d_day=d_day, bucket=bucket)


def classify(event: Event, today: Optional[Any] = None) -> DeadlineStatus:
    """D-Day and bucket of one event relative to `today` (local today if omitted)."""
    return classify_value(event.date, event.is_executed, today)


def horizon_bucket(
    d_day: int,
    imminent_days: Optional[int] = None,
    soon_days: Optional[int] = None,
) -> HorizonBucket:
    config = EngineSettings.get_config()
    imminent = config.imminent_days if imminent_days is None else imminent_days
    soon = config.soon_days if soon_days is None else soon_days
    if d_day <= imminent:
        return HorizonBucket.IMMINENT
    if d_day <= soon:
        return HorizonBucket.SOON
    return HorizonBucket.FUTURE


def format_d_day(d_day: Optional[int], is_executed: bool = False, language: Optional[str] = None) -> str:
    if is_executed:
        return _DONE_TEXT[resolve_language(language)]
    if d_day is None:
        return ""
    if d_day < 0:
        return f"D+{abs(d_day)}"
    if d_day == 0:
        return "D-Day"
    return f"D-{d_day}"


def deadline_priority(d_day: Optional[int], is_executed: bool = False) -> int:
    if is_executed:
        return COMPLETED_PRIORITY
    if d_day is None:
        return UNKNOWN_PRIORITY
    if d_day < 0:
        return abs(d_day)
    return d_day


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# BATCH VIEWS
# ════════════════════════════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ClassifiedEvent:
    """Event plus its deadline status, as served to alert/badge views."""
    event: Event
    status: DeadlineStatus
    horizon: Optional[HorizonBucket]
    priority: int
    d_day_text: str

    @property
    def d_day(self) -> int:
        return self.status.d_day

    @property
    def bucket(self) -> DeadlineBucket:
        return self.status.bucket

    def to_dict(self) -> Dict[str, Any]:
        data = self.event.to_dict()
        data.update(self.status.to_dict())
        data["horizon"] = self.horizon.value if self.horizon else None
        data["priority"] = self.priority
        data["dDayText"] = self.d_day_text
        return data


def classify_event(
    event: Event,
    today: Optional[Any] = None,
    language: Optional[str] = None,
) -> ClassifiedEvent:
    status = classify(event, today)
    horizon = horizon_bucket(status.d_day) if status.bucket == DeadlineBucket.UPCOMING else None
    return ClassifiedEvent(
        event=event,
        status=status,
        horizon=horizon,
        priority=deadline_priority(status.d_day, event.is_executed),
        d_day_text=format_d_day(status.d_day, event.is_executed, language),
    )


def classify_events(
    events: Iterable[Event],
    today: Optional[Any] = None,
    language: Optional[str] = None,
) -> List[ClassifiedEvent]:
    """Classify events against one reference day; input order is preserved."""
    reference = _resolve_today(today)
    return [classify_event(e, reference, language) for e in events]


def compute_deadline_statistics(events: Iterable[Event], today: Optional[Any] = None) -> Dict[str, int]:
    """
    Counts per bucket and per horizon.

    Returns:
        total, overdue, today, upcoming, completed, imminent, soon, future
    """
    stats = {
        "total": 0,
        "overdue": 0,
        "today": 0,
        "upcoming": 0,
        "completed": 0,
        "imminent": 0,
        "soon": 0,
        "future": 0,
    }
    for item in classify_events(events, today):
        stats["total"] += 1
        stats[item.bucket.value] += 1
        if item.horizon is not None:
            stats[item.horizon.value] += 1
    return stats


@dataclass(frozen=True)
class NotificationTarget:
    """An unexecuted event that warrants an alert."""
    item: ClassifiedEvent
    notification_type: NotificationType
    urgency: Urgency

    def to_dict(self) -> Dict[str, Any]:
        data = self.item.to_dict()
        data["notificationType"] = self.notification_type.value
        data["urgency"] = self.urgency.value
        return data


def get_notification_targets(
    events: Iterable[Event],
    today: Optional[Any] = None,
    urgent_days: Optional[int] = None,
    reminder_days: Optional[int] = None,
    include_today: bool = True,
    include_overdue: bool = True,
    language: Optional[str] = None,
) -> List[NotificationTarget]:
    """
    Select events that need an alert, most urgent first.

    Rules (first match wins, executed events never notify):
        overdue   d_day < 0                   (if include_overdue)
        today     d_day = 0                   (if include_today)
        urgent    0 < d_day ≤ urgent_days
        reminder  0 < d_day ≤ reminder_days

    Urgency is high for overdue/today, medium inside the imminent horizon,
    low otherwise. Sorted by urgency, then deadline priority.
    """
    config = EngineSettings.get_config()
    urgent = config.urgent_days if urgent_days is None else urgent_days
    reminder = config.reminder_days if reminder_days is None else reminder_days

    targets: List[NotificationTarget] = []
    for item in classify_events(events, today, language):
        if item.event.is_executed:
            continue

        d_day = item.d_day
        if include_overdue and item.bucket == DeadlineBucket.OVERDUE:
            kind = NotificationType.OVERDUE
        elif include_today and item.bucket == DeadlineBucket.TODAY:
            kind = NotificationType.TODAY
        elif 0 < d_day <= urgent:
            kind = NotificationType.URGENT
        elif 0 < d_day <= reminder:
            kind = NotificationType.REMINDER
        else:
            continue

        if item.bucket in (DeadlineBucket.OVERDUE, DeadlineBucket.TODAY):
            urgency = Urgency.HIGH
        elif item.horizon == HorizonBucket.IMMINENT:
            urgency = Urgency.MEDIUM
        else:
            urgency = Urgency.LOW

        targets.append(NotificationTarget(item=item, notification_type=kind, urgency=urgency))

    targets.sort(key=lambda t: (_URGENCY_ORDER[t.urgency], t.item.priority))
    logger.debug(f"[deadlines] {len(targets)} notification target(s)")
    return targets
