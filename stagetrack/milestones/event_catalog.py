"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    STAGETRACK — EVENT CATALOG
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Display metadata for every date field that can appear on a calendar.

CATEGORIES (tie-break order for events on the same day)
═══════════════════════════════════════════════════════

    0  milestone        massProductionDate, launchDate
    1  production       pilotProductionDate, techTransferDate, pilotReceiveDate, initialProductionDate
    2  service          trainingDate, orderAcceptanceDate
    3  procurement      firstPartsOrderDate, partsReceiptDate, branchOrderGuideDate
    4  administrative   bomCompletionDate, priceRegistrationDate

Colors follow the stage palette of the calendar views: blue for stage1,
green for stage2, purple for stage3.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from ..project_tracking.stage_schema import DEFAULT_REGISTRY, StageSchemaRegistry

logger = logging.getLogger(__name__)


class EventCategory(str, Enum):
    MILESTONE = "milestone"
    PRODUCTION = "production"
    SERVICE = "service"
    PROCUREMENT = "procurement"
    ADMINISTRATIVE = "administrative"

    @property
    def priority(self) -> int:
        return _CATEGORY_ORDER.index(self)


_CATEGORY_ORDER: Tuple[EventCategory, ...] = (
    EventCategory.MILESTONE,
    EventCategory.PRODUCTION,
    EventCategory.SERVICE,
    EventCategory.PROCUREMENT,
    EventCategory.ADMINISTRATIVE,
)

FIELD_CATEGORIES: Mapping[str, EventCategory] = MappingProxyType({
    "massProductionDate": EventCategory.MILESTONE,
    "launchDate": EventCategory.MILESTONE,
    "pilotProductionDate": EventCategory.PRODUCTION,
    "techTransferDate": EventCategory.PRODUCTION,
    "pilotReceiveDate": EventCategory.PRODUCTION,
    "initialProductionDate": EventCategory.PRODUCTION,
    "trainingDate": EventCategory.SERVICE,
    "orderAcceptanceDate": EventCategory.SERVICE,
    "firstPartsOrderDate": EventCategory.PROCUREMENT,
    "partsReceiptDate": EventCategory.PROCUREMENT,
    "branchOrderGuideDate": EventCategory.PROCUREMENT,
    "bomCompletionDate": EventCategory.ADMINISTRATIVE,
    "priceRegistrationDate": EventCategory.ADMINISTRATIVE,
})

FIELD_COLORS: Mapping[str, str] = MappingProxyType({
    "launchDate": "bg-blue-500",
    "massProductionDate": "bg-blue-600",
    "pilotProductionDate": "bg-green-500",
    "techTransferDate": "bg-green-600",
    "trainingDate": "bg-green-400",
    "pilotReceiveDate": "bg-green-700",
    "orderAcceptanceDate": "bg-green-300",
    "firstPartsOrderDate": "bg-purple-500",
    "bomCompletionDate": "bg-purple-600",
    "priceRegistrationDate": "bg-purple-400",
    "partsReceiptDate": "bg-purple-700",
    "branchOrderGuideDate": "bg-purple-300",
    "initialProductionDate": "bg-purple-800",
})

STAGE_COLORS: Mapping[str, str] = MappingProxyType({
    "stage1": "bg-blue-500",
    "stage2": "bg-green-500",
    "stage3": "bg-purple-500",
})


@dataclass(frozen=True)
class EventType:
    """
    Calendar metadata for one date field.

    Attributes:
        field_name: Date field key in the stage mapping
        stage: Owning stage
        labels: Display label per language code
        color: CSS color class used by calendar views
        category: Tie-break category
        priority: Position of the field inside the catalog
        executed_field: Sibling executed flag key
    """
    field_name: str
    stage: str
    labels: Mapping[str, str] = field(default_factory=dict)
    color: str = "bg-gray-500"
    category: EventCategory = EventCategory.ADMINISTRATIVE
    priority: int = 0
    executed_field: Optional[str] = None

    def label(self, language: str = "ko") -> str:
        return self.labels.get(language) or self.labels.get("en") or self.field_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field_name": self.field_name,
            "stage": self.stage,
            "labels": dict(self.labels),
            "color": self.color,
            "category": self.category.value,
            "priority": self.priority,
        }


class EventCatalog:
    """Ordered, read-only set of EventTypes keyed by (stage, field)."""

    def __init__(self, entries: Tuple[EventType, ...]):
        self._entries = tuple(entries)
        self._index = MappingProxyType({(e.stage, e.field_name): e for e in self._entries})

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, stage_name: str, field_name: str) -> Optional[EventType]:
        return self._index.get((stage_name, field_name))

    def for_stage(self, stage_name: str) -> Tuple[EventType, ...]:
        return tuple(e for e in self._entries if e.stage == stage_name)

    def to_dict(self) -> Dict[str, Any]:
        return {"event_types": [e.to_dict() for e in self._entries]}


def build_event_catalog(registry: Optional[StageSchemaRegistry] = None) -> EventCatalog:
    """
    Build a catalog from the registry's date fields.

    Required and optional dates are both included. Fields without an
    explicit category fall back to administrative.
    """
    registry = registry or DEFAULT_REGISTRY
    entries = []
    for stage_name in registry.stage_names:
        for spec in registry.date_fields(stage_name):
            category = FIELD_CATEGORIES.get(spec.name)
            if category is None:
                logger.debug(f"No calendar category for {stage_name}.{spec.name}, using administrative")
                category = EventCategory.ADMINISTRATIVE
            entries.append(EventType(
                field_name=spec.name,
                stage=stage_name,
                labels=spec.labels,
                color=FIELD_COLORS.get(spec.name, STAGE_COLORS.get(stage_name, "bg-gray-500")),
                category=category,
                priority=len(entries),
                executed_field=spec.executed_field,
            ))
    return EventCatalog(tuple(entries))


DEFAULT_EVENT_CATALOG = build_event_catalog(DEFAULT_REGISTRY)
