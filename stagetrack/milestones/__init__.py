"""
StageTrack - Milestones
=======================

Calendar layer derived from project stage dates:

1. Event catalog and extraction (one event per non-blank date field)
2. D-Day and deadline classification (overdue / today / upcoming / completed)
3. Calendar filters, view windows and statistics
4. iCal / CSV exports and web calendar links
"""

from .event_catalog import (
    DEFAULT_EVENT_CATALOG,
    EventCatalog,
    EventCategory,
    EventType,
    build_event_catalog,
)
from .event_extractor import Event, extract_events, extract_project_events
from .deadline_engine import (
    ClassifiedEvent,
    DeadlineBucket,
    DeadlineStatus,
    HorizonBucket,
    NotificationTarget,
    classify,
    classify_events,
    compute_d_day,
    compute_deadline_statistics,
    deadline_priority,
    format_d_day,
    get_notification_targets,
    horizon_bucket,
)
from .calendar_views import (
    CalendarFilters,
    CalendarStats,
    StatusFilter,
    ViewMode,
    compute_calendar_stats,
    events_in_window,
    filter_events,
    view_window,
)
from .calendar_export import (
    ExportOptions,
    events_to_dataframe,
    google_calendar_url,
    outlook_calendar_url,
    to_csv,
    to_ical,
)

__all__ = [
    "DEFAULT_EVENT_CATALOG",
    "EventCatalog",
    "EventCategory",
    "EventType",
    "build_event_catalog",
    "Event",
    "extract_events",
    "extract_project_events",
    "ClassifiedEvent",
    "DeadlineBucket",
    "DeadlineStatus",
    "HorizonBucket",
    "NotificationTarget",
    "classify",
    "classify_events",
    "compute_d_day",
    "compute_deadline_statistics",
    "deadline_priority",
    "format_d_day",
    "get_notification_targets",
    "horizon_bucket",
    "CalendarFilters",
    "CalendarStats",
    "StatusFilter",
    "ViewMode",
    "compute_calendar_stats",
    "events_in_window",
    "filter_events",
    "view_window",
    "ExportOptions",
    "events_to_dataframe",
    "google_calendar_url",
    "outlook_calendar_url",
    "to_csv",
    "to_ical",
]
