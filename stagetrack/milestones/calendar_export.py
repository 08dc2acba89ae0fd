"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    STAGETRACK — CALENDAR EXPORT
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Projectors from extracted events to external calendar formats.

    to_ical              RFC 5545 VCALENDAR, all-day VEVENTs, CRLF line endings
    to_csv               UTF-8 CSV with BOM (spreadsheet friendly), localized headers
    events_to_dataframe  pandas view used by to_csv and reporting
    google_calendar_url  "add to calendar" template link
    outlook_calendar_url Outlook web compose deeplink

Projectors never re-derive dates or executed flags: they read Event objects
and ask the deadline classifier for D-Day values.

iCal PRIORITY:
    executed           9
    overdue / today    1
    within 7 days      5
    later              9
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlencode

import pandas as pd

from ..engine_config import EngineSettings, Language, resolve_language
from ..project_tracking.stage_schema import DEFAULT_REGISTRY
from .deadline_engine import classify_value, format_d_day
from .event_extractor import Event

logger = logging.getLogger(__name__)

UID_DOMAIN = "projectmanagement.local"
GOOGLE_CALENDAR_BASE = "https://calendar.google.com/calendar/render"
OUTLOOK_CALENDAR_BASE = "https://outlook.live.com/calendar/0/deeplink/compose"
ICAL_PRIORITY_WINDOW_DAYS = 7

_ICAL_MAX_OCTETS = 75
UTF8_BOM = "\ufeff"

_TEXT: Dict[Language, Dict[str, str]] = {
    Language.KO: {
        "title": "프로젝트 관리 달력",
        "description": "프로젝트 일정 및 마일스톤",
        "prodid": "-//프로젝트 관리 시스템//달력 v1.1//KO",
        "stage_tag": "[{n}단계]",
        "done_suffix": " (완료됨)",
        "project": "프로젝트",
        "model": "모델명",
        "stage": "단계",
        "type": "유형",
        "status": "상태",
        "done": "완료됨",
        "planned": "예정됨",
        "category": "프로젝트관리",
    },
    Language.EN: {
        "title": "Project calendar",
        "description": "Project schedules and milestones",
        "prodid": "-//Project Management System//Calendar v1.1//EN",
        "stage_tag": "[Stage {n}]",
        "done_suffix": " (done)",
        "project": "Project",
        "model": "Model",
        "stage": "Stage",
        "type": "Type",
        "status": "Status",
        "done": "Done",
        "planned": "Planned",
        "category": "ProjectManagement",
    },
}

CSV_HEADERS: Dict[Language, List[str]] = {
    Language.KO: ["프로젝트명", "모델명", "단계", "일정유형", "날짜", "상태", "D-Day", "설명"],
    Language.EN: ["Project", "Model", "Stage", "Event type", "Date", "Status", "D-Day", "Description"],
}


@dataclass
class ExportOptions:
    """
    Formatting options shared by the projectors.

    title/description default to the language's calendar name when None.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    language: Optional[str] = None

    @property
    def lang(self) -> Language:
        return resolve_language(self.language)

    @property
    def resolved_title(self) -> str:
        return self.title or _TEXT[self.lang]["title"]

    @property
    def resolved_description(self) -> str:
        return self.description or _TEXT[self.lang]["description"]


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# HELPERS
# ════════════════════════════════════════════════════════════════════════════════════════════════════

def _stage_number(stage_name: str) -> str:
    return stage_name[len("stage"):] if stage_name.startswith("stage") else stage_name


def _stage_tag(stage_name: str, lang: Language) -> str:
    return _TEXT[lang]["stage_tag"].format(n=_stage_number(stage_name))


def _ical_date(day: date) -> str:
    return day.strftime("%Y%m%d")


def _ical_timestamp(moment: datetime) -> str:
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y%m%dT%H%M%SZ")


def escape_ical_text(value: Any) -> str:
    """Escape TEXT values: backslash, semicolon, comma and newlines."""
    text = "" if value is None else str(value)
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def fold_ical_line(line: str) -> List[str]:
    """Split a content line into chunks of at most 75 octets (UTF-8 safe)."""
    chunks: List[str] = []
    current = ""
    size = 0
    limit = _ICAL_MAX_OCTETS
    for char in line:
        width = len(char.encode("utf-8"))
        if size + width > limit:
            chunks.append(current)
            # continuation lines start with a space, which counts toward the limit
            current, size, limit = char, width, _ICAL_MAX_OCTETS - 1
        else:
            current += char
            size += width
    chunks.append(current)
    return chunks


def ical_priority(event: Event, today: Optional[Any] = None) -> int:
    if event.is_executed:
        return 9
    status = classify_value(event.date, False, today)
    if status.d_day <= 0:
        return 1
    if status.d_day <= ICAL_PRIORITY_WINDOW_DAYS:
        return 5
    return 9


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# ICAL
# ════════════════════════════════════════════════════════════════════════════════════════════════════

def to_ical(
    events: Iterable[Event],
    options: Optional[ExportOptions] = None,
    today: Optional[Any] = None,
    generated_at: Optional[datetime] = None,
) -> str:
    """
    Render events as an iCalendar document.

    Args:
        events: Extracted events
        options: Title/description/language
        today: Reference day for PRIORITY (local today if omitted)
        generated_at: CREATED/LAST-MODIFIED stamp (now, UTC, if omitted)

    Returns:
        iCalendar text with CRLF line endings
    """
    options = options or ExportOptions()
    lang = options.lang
    text = _TEXT[lang]
    stamp = _ical_timestamp(generated_at or datetime.now(timezone.utc))
    events = list(events)

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{text['prodid']}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-CALNAME:{escape_ical_text(options.resolved_title)}",
        f"X-WR-CALDESC:{escape_ical_text(options.resolved_description)}",
        f"X-WR-TIMEZONE:{EngineSettings.get_config().timezone}",
    ]

    for event in events:
        stage_tag = _stage_tag(event.stage, lang)
        suffix = text["done_suffix"] if event.is_executed else ""
        description = "\n".join([
            f"{text['project']}: {event.project_name}",
            f"{text['model']}: {event.model_name}",
            f"{text['stage']}: {stage_tag} {event.stage}",
            f"{text['type']}: {event.label}",
            f"{text['status']}: {text['done'] if event.is_executed else text['planned']}",
        ])
        categories = ",".join(
            escape_ical_text(c) for c in (event.stage, text["category"], event.field_name)
        )

        lines.extend([
            "BEGIN:VEVENT",
            f"UID:{event.event_id}@{UID_DOMAIN}",
            f"DTSTAMP:{stamp}",
            f"DTSTART;VALUE=DATE:{_ical_date(event.date)}",
            f"DTEND;VALUE=DATE:{_ical_date(event.date + timedelta(days=1))}",
            f"SUMMARY:{escape_ical_text(f'{stage_tag} {event.label} - {event.project_name}{suffix}')}",
            f"DESCRIPTION:{escape_ical_text(description)}",
            f"CATEGORIES:{categories}",
            f"STATUS:{'CONFIRMED' if event.is_executed else 'TENTATIVE'}",
            f"PRIORITY:{ical_priority(event, today)}",
            f"CREATED:{stamp}",
            f"LAST-MODIFIED:{stamp}",
            "END:VEVENT",
        ])

    lines.append("END:VCALENDAR")

    folded: List[str] = []
    for line in lines:
        chunks = fold_ical_line(line)
        folded.append(chunks[0])
        folded.extend(" " + chunk for chunk in chunks[1:])

    logger.info(f"Exported {len(events)} event(s) to iCal")
    return "\r\n".join(folded) + "\r\n"


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# CSV / DATAFRAME
# ════════════════════════════════════════════════════════════════════════════════════════════════════

def events_to_dataframe(
    events: Iterable[Event],
    options: Optional[ExportOptions] = None,
    today: Optional[Any] = None,
) -> pd.DataFrame:
    """One localized row per event, columns in CSV header order."""
    options = options or ExportOptions()
    lang = options.lang
    text = _TEXT[lang]

    rows = []
    for event in events:
        status = classify_value(event.date, event.is_executed, today)
        rows.append([
            event.project_name,
            event.model_name,
            DEFAULT_REGISTRY.stage_label(event.stage, lang.value),
            event.label,
            event.date.isoformat(),
            text["done"] if event.is_executed else text["planned"],
            format_d_day(status.d_day, event.is_executed, lang.value),
            f"{event.project_name} - {event.label}",
        ])

    return pd.DataFrame(rows, columns=CSV_HEADERS[lang])


def to_csv(
    events: Iterable[Event],
    options: Optional[ExportOptions] = None,
    today: Optional[Any] = None,
) -> str:
    """CSV text prefixed with a UTF-8 BOM, every cell quoted."""
    df = events_to_dataframe(events, options, today)
    body = df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    logger.info(f"Exported {len(df)} event(s) to CSV")
    return UTF8_BOM + body


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# WEB CALENDAR LINKS
# ════════════════════════════════════════════════════════════════════════════════════════════════════

def _link_details(event: Event, lang: Language) -> str:
    text = _TEXT[lang]
    return "\n".join([
        f"{text['project']}: {event.project_name}",
        f"{text['model']}: {event.model_name}",
        f"{text['stage']}: {event.stage}",
        f"{text['type']}: {event.label}",
    ])


def google_calendar_url(event: Event, language: Optional[str] = None) -> str:
    """All-day Google Calendar template link (end date exclusive)."""
    lang = resolve_language(language)
    start = _ical_date(event.date)
    end = _ical_date(event.date + timedelta(days=1))
    params = {
        "action": "TEMPLATE",
        "text": f"{event.label} - {event.project_name}",
        "dates": f"{start}/{end}",
        "details": _link_details(event, lang),
        "location": "",
        "trp": "false",
    }
    return f"{GOOGLE_CALENDAR_BASE}?{urlencode(params)}"


def outlook_calendar_url(event: Event, language: Optional[str] = None) -> str:
    """All-day Outlook web compose link."""
    lang = resolve_language(language)
    params = {
        "subject": f"{event.label} - {event.project_name}",
        "startdt": event.date.isoformat(),
        "enddt": (event.date + timedelta(days=1)).isoformat(),
        "body": _link_details(event, lang),
        "allday": "true",
    }
    return f"{OUTLOOK_CALENDAR_BASE}?{urlencode(params)}"


def calendar_links(events: Iterable[Event], language: Optional[str] = None) -> List[Dict[str, Any]]:
    """Event dicts annotated with googleUrl/outlookUrl."""
    result = []
    for event in events:
        data = event.to_dict()
        data["googleUrl"] = google_calendar_url(event, language)
        data["outlookUrl"] = outlook_calendar_url(event, language)
        result.append(data)
    return result
