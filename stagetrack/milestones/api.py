"""
════════════════════════════════════════════════════════════════════════════════════════════════════
MILESTONES API - Endpoints de calendário, prazos e exportação
════════════════════════════════════════════════════════════════════════════════════════════════════

API REST (stateless) para:
- Eventos de calendário derivados dos estágios (com filtros e vistas)
- D-Day e classificação de prazos
- Alvos de notificação
- Exportação iCal / CSV
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from ..date_normalizer import today_local
from ..models_common import (
    CalendarFiltersModel,
    DeadlinesRequest,
    EventsRequest,
    EventsResponse,
    ExportRequest,
    NotificationsRequest,
)
from .calendar_export import ExportOptions, calendar_links, to_csv, to_ical
from .calendar_views import (
    CalendarFilters,
    compute_calendar_stats,
    events_in_window,
    filter_events,
)
from .deadline_engine import (
    classify_events,
    compute_deadline_statistics,
    get_notification_targets,
)
from .event_extractor import Event, extract_events

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/milestones", tags=["Milestones"])

EXPORT_MEDIA_TYPES = {
    "ical": ("text/calendar; charset=utf-8", "ics"),
    "ics": ("text/calendar; charset=utf-8", "ics"),
    "csv": ("text/csv; charset=utf-8", "csv"),
}


def _apply_filters(events: List[Event], filters: Optional[CalendarFiltersModel], today) -> List[Event]:
    if filters is None:
        return events
    return filter_events(events, CalendarFilters(**filters.model_dump()), today)


# ═══════════════════════════════════════════════════════════════════════════════
# EVENTS
# ═══════════════════════════════════════════════════════════════════════════════

@router.post("/events", summary="Calendar events of a set of projects")
async def list_events(request: EventsRequest) -> EventsResponse:
    """
    Eventos ordenados por data, opcionalmente filtrados e recortados numa
    vista de mês/semana/dia.
    """
    today = request.today or today_local()
    events = extract_events(request.projects, language=request.language)
    events = _apply_filters(events, request.filters, today)
    events = events_in_window(events, request.anchor or today, request.view)

    return EventsResponse(
        total=len(events),
        events=calendar_links(events, request.language),
        stats=compute_calendar_stats(events, today).to_dict(),
    )


@router.post("/deadlines", summary="D-Day and bucket per event")
async def list_deadlines(request: DeadlinesRequest) -> Dict[str, Any]:
    today = request.today or today_local()
    events = extract_events(request.projects, language=request.language)
    classified = classify_events(events, today, request.language)
    return {
        "today": today.isoformat(),
        "events": [c.to_dict() for c in classified],
        "statistics": compute_deadline_statistics(events, today),
    }


@router.post("/notifications", summary="Events that need an alert")
async def list_notifications(request: NotificationsRequest) -> Dict[str, Any]:
    today = request.today or today_local()
    events = extract_events(request.projects, language=request.language)
    targets = get_notification_targets(
        events,
        today,
        urgent_days=request.urgent_days,
        reminder_days=request.reminder_days,
        include_today=request.include_today,
        include_overdue=request.include_overdue,
        language=request.language,
    )
    return {
        "today": today.isoformat(),
        "total": len(targets),
        "notifications": [t.to_dict() for t in targets],
    }


# ═══════════════════════════════════════════════════════════════════════════════
# EXPORT
# ═══════════════════════════════════════════════════════════════════════════════

@router.post("/export/{fmt}", summary="Export events as iCal or CSV")
async def export_events(fmt: str, request: ExportRequest) -> Response:
    fmt = fmt.lower()
    if fmt not in EXPORT_MEDIA_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported export format '{fmt}'. Use one of: {', '.join(sorted(EXPORT_MEDIA_TYPES))}",
        )

    today = request.today or today_local()
    events = extract_events(request.projects, language=request.language)
    events = _apply_filters(events, request.filters, today)
    options = ExportOptions(
        title=request.options.title,
        description=request.options.description,
        language=request.language,
    )

    media_type, extension = EXPORT_MEDIA_TYPES[fmt]
    if extension == "ics":
        content = to_ical(events, options, today)
    else:
        content = to_csv(events, options, today)

    filename = f"stagetrack_{today.isoformat()}.{extension}"
    logger.info(f"Export {fmt}: {len(events)} event(s)")
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
