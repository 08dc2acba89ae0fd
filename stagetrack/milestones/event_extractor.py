"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    STAGETRACK — EVENT EXTRACTOR
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Flattens project stage data into a sorted list of calendar events.

    for project in projects:
        for event_type in catalog:
            value = project.<stage>[field]
            if value non-blank and parses  →  Event

Sort key:

    (date, category priority, project id, catalog position)

The extractor is a pure function: no cache, no mutation. Calling it twice on
the same input yields equal output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..date_normalizer import is_blank, parse_date
from ..engine_config import resolve_language
from ..project_tracking.project_model import ProjectLike, as_project
from .event_catalog import DEFAULT_EVENT_CATALOG, EventCatalog, EventCategory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    """
    One dated milestone derived from a project's stage data.

    Attributes:
        event_id: "<project id>_<field name>"
        project_id/project_name/model_name: Project reference
        stage: Owning stage
        field_name: Source date field
        label: Localized field label
        date: Calendar date (local midnight)
        is_executed: The paired executed flag is True
        category: Tie-break category
        color: CSS color class
        catalog_position: Field order inside the catalog
    """
    event_id: str
    project_id: str
    project_name: str
    model_name: str
    stage: str
    field_name: str
    label: str
    date: date
    is_executed: bool
    category: EventCategory
    color: str
    catalog_position: int = 0

    @property
    def sort_key(self) -> Tuple[date, int, str, int]:
        return (self.date, self.category.priority, str(self.project_id), self.catalog_position)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.event_id,
            "projectId": self.project_id,
            "projectName": self.project_name,
            "modelName": self.model_name,
            "stage": self.stage,
            "type": self.field_name,
            "label": self.label,
            "date": self.date.isoformat(),
            "isExecuted": self.is_executed,
            "category": self.category.value,
            "color": self.color,
        }


def extract_project_events(
    project: ProjectLike,
    catalog: Optional[EventCatalog] = None,
    language: Optional[str] = None,
) -> List[Event]:
    """Unsorted events of a single project."""
    catalog = catalog or DEFAULT_EVENT_CATALOG
    lang = resolve_language(language)
    project = as_project(project)
    events: List[Event] = []

    for event_type in catalog:
        stage = project.stage(event_type.stage)
        if not isinstance(stage, Mapping):
            continue

        raw = stage.get(event_type.field_name)
        if is_blank(raw):
            continue

        event_date = parse_date(raw)
        if event_date is None:
            logger.warning(
                f"[events] {project.project_id}: skipping {event_type.stage}.{event_type.field_name}, "
                f"unparseable date {raw!r}"
            )
            continue

        events.append(Event(
            event_id=f"{project.project_id}_{event_type.field_name}",
            project_id=project.project_id,
            project_name=project.name,
            model_name=project.display_model_name,
            stage=event_type.stage,
            field_name=event_type.field_name,
            label=event_type.label(lang.value),
            date=event_date,
            is_executed=bool(event_type.executed_field) and stage.get(event_type.executed_field) is True,
            category=event_type.category,
            color=event_type.color,
            catalog_position=event_type.priority,
        ))

    return events


def extract_events(
    projects: Iterable[ProjectLike],
    catalog: Optional[EventCatalog] = None,
    language: Optional[str] = None,
) -> List[Event]:
    """
    Extract and sort events for a collection of projects.

    Args:
        projects: Projects or raw wire-shape mappings
        catalog: Event catalog (default catalog built from the registry)
        language: Label language (configured default if omitted)

    Returns:
        Events sorted by date, then category priority, project id, field order.
    """
    events: List[Event] = []
    for project in projects:
        events.extend(extract_project_events(project, catalog, language))

    events.sort(key=lambda e: e.sort_key)
    logger.debug(f"[events] extracted {len(events)} event(s)")
    return events
