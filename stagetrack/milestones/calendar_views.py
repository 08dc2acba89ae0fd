"""
Calendar views - filtering, view windows and summary counts over events.

Filters combine with AND; an empty/None criterion does not filter. Status
filters use the same day arithmetic as the deadline classifier:

    upcoming   not executed and date ≥ today
    overdue    not executed and date < today
    completed  executed

View windows: month (1st to last day), week (Sunday to Saturday), day, and
list (unbounded).
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..date_normalizer import normalize_to_midnight, today_local
from ..project_tracking.stage_schema import STAGE_NAMES
from .event_extractor import Event

logger = logging.getLogger(__name__)


class StatusFilter(str, Enum):
    ALL = "all"
    UPCOMING = "upcoming"
    OVERDUE = "overdue"
    COMPLETED = "completed"


class ViewMode(str, Enum):
    MONTH = "month"
    WEEK = "week"
    DAY = "day"
    LIST = "list"


@dataclass
class CalendarFilters:
    """
    Event filter criteria.

    Attributes:
        stages: Stage names to keep (None/empty = all)
        status: all/upcoming/overdue/completed
        project_ids: Project ids to keep (None = all)
        field_names: Event types (date field names) to keep (None = all)
        search: Case-insensitive substring over project name, model name, label
    """
    stages: Optional[Sequence[str]] = None
    status: StatusFilter = StatusFilter.ALL
    project_ids: Optional[Sequence[str]] = None
    field_names: Optional[Sequence[str]] = None
    search: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CalendarFilters":
        data = data or {}
        stages = data.get("stages")
        if stages and "all" in stages:
            stages = None
        return cls(
            stages=stages or None,
            status=StatusFilter(data.get("status") or "all"),
            project_ids=data.get("project_ids", data.get("projects")),
            field_names=data.get("field_names", data.get("event_types")),
            search=data.get("search") or None,
        )


def _matches_status(event: Event, status: StatusFilter, today: date) -> bool:
    if status == StatusFilter.COMPLETED:
        return event.is_executed
    if status == StatusFilter.UPCOMING:
        return not event.is_executed and event.date >= today
    if status == StatusFilter.OVERDUE:
        return not event.is_executed and event.date < today
    return True


def _matches_search(event: Event, needle: str) -> bool:
    needle = needle.lower()
    return any(
        needle in (text or "").lower()
        for text in (event.project_name, event.model_name, event.label)
    )


def filter_events(
    events: Iterable[Event],
    filters: Optional[CalendarFilters] = None,
    today: Optional[Any] = None,
) -> List[Event]:
    """Apply CalendarFilters, preserving input order."""
    filters = filters or CalendarFilters()
    reference = normalize_to_midnight(today) if today is not None else today_local()

    result = []
    for event in events:
        if filters.stages and event.stage not in filters.stages:
            continue
        if not _matches_status(event, StatusFilter(filters.status), reference):
            continue
        if filters.project_ids is not None and event.project_id not in filters.project_ids:
            continue
        if filters.field_names is not None and event.field_name not in filters.field_names:
            continue
        if filters.search and not _matches_search(event, filters.search):
            continue
        result.append(event)
    return result


def view_window(anchor: Any, mode: str = ViewMode.MONTH) -> Optional[Tuple[date, date]]:
    """
    Inclusive (start, end) of the view containing `anchor`.

    Returns None for list mode (no bounds).
    """
    mode = ViewMode(mode)
    day = normalize_to_midnight(anchor)
    if day is None:
        raise ValueError(f"Invalid anchor date: {anchor!r}")

    if mode == ViewMode.LIST:
        return None
    if mode == ViewMode.DAY:
        return day, day
    if mode == ViewMode.WEEK:
        # date.weekday(): Monday=0; weeks start on Sunday
        start = day - timedelta(days=(day.weekday() + 1) % 7)
        return start, start + timedelta(days=6)

    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def events_in_window(events: Iterable[Event], anchor: Any, mode: str = ViewMode.MONTH) -> List[Event]:
    window = view_window(anchor, mode)
    if window is None:
        return list(events)
    start, end = window
    return [e for e in events if start <= e.date <= end]


@dataclass
class CalendarStats:
    total: int = 0
    upcoming: int = 0
    overdue: int = 0
    completed: int = 0
    this_month: int = 0
    by_stage: Dict[str, int] = field(default_factory=lambda: {s: 0 for s in STAGE_NAMES})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "upcoming": self.upcoming,
            "overdue": self.overdue,
            "completed": self.completed,
            "this_month": self.this_month,
            "by_stage": dict(self.by_stage),
        }


def compute_calendar_stats(events: Iterable[Event], today: Optional[Any] = None) -> CalendarStats:
    """Status counts, events in the current month and per-stage counts."""
    reference = normalize_to_midnight(today) if today is not None else today_local()
    stats = CalendarStats()

    for event in events:
        stats.total += 1
        if event.is_executed:
            stats.completed += 1
        elif event.date < reference:
            stats.overdue += 1
        else:
            stats.upcoming += 1

        if event.date.year == reference.year and event.date.month == reference.month:
            stats.this_month += 1

        stats.by_stage[event.stage] = stats.by_stage.get(event.stage, 0) + 1

    return stats
