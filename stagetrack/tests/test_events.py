"""
═══════════════════════════════════════════════════════════════════════════════
                    STAGETRACK — Event Extraction Tests
═══════════════════════════════════════════════════════════════════════════════

Run with: python -m pytest stagetrack/tests/test_events.py -v
"""

import copy
from datetime import date

from stagetrack.milestones import (
    DEFAULT_EVENT_CATALOG,
    EventCategory,
    extract_events,
)


def _project(pid, stage1=None, stage2=None, stage3=None, name=None):
    return {
        "id": pid,
        "name": name or pid,
        "stage1": stage1 or {},
        "stage2": stage2 or {},
        "stage3": stage3 or {},
    }


class TestEventCatalog:
    """Catalog built from the registry's date fields."""

    def test_every_date_field_is_cataloged(self):
        names = {(e.stage, e.field_name) for e in DEFAULT_EVENT_CATALOG}
        assert ("stage1", "launchDate") in names
        assert ("stage2", "pilotReceiveDate") in names
        assert ("stage3", "initialProductionDate") in names
        assert len(DEFAULT_EVENT_CATALOG) == 13

    def test_categories(self):
        assert DEFAULT_EVENT_CATALOG.get("stage1", "massProductionDate").category == EventCategory.MILESTONE
        assert DEFAULT_EVENT_CATALOG.get("stage3", "bomCompletionDate").category == EventCategory.ADMINISTRATIVE
        assert EventCategory.MILESTONE.priority < EventCategory.ADMINISTRATIVE.priority

    def test_stage_colors(self):
        assert DEFAULT_EVENT_CATALOG.get("stage1", "launchDate").color.startswith("bg-blue")
        assert DEFAULT_EVENT_CATALOG.get("stage2", "trainingDate").color.startswith("bg-green")
        assert DEFAULT_EVENT_CATALOG.get("stage3", "partsReceiptDate").color.startswith("bg-purple")


class TestExtractEvents:
    """One event per non-blank date field."""

    def test_scenario_events(self, scenario_project):
        events = extract_events([scenario_project])
        assert [e.event_id for e in events] == ["PRJ-001_launchDate", "PRJ-001_massProductionDate"]
        launch = events[0]
        assert launch.date == date(2025, 4, 1)
        assert launch.is_executed is True
        assert launch.model_name == "WP-200"
        assert launch.label == "출시예정일"

    def test_blank_and_invalid_dates_are_skipped(self):
        project = _project("P", stage1={"launchDate": "", "massProductionDate": "soon"})
        assert extract_events([project]) == []

    def test_sorted_by_date(self, overdue_projects):
        events = extract_events(overdue_projects)
        assert [e.project_id for e in events] == ["PRJ-B", "PRJ-A"]
        assert events[0].date < events[1].date

    def test_same_day_tie_break_by_category(self):
        project = _project(
            "P",
            stage1={"launchDate": "2025-05-01"},
            stage3={"bomCompletionDate": "2025-05-01", "firstPartsOrderDate": "2025-05-01"},
            stage2={"trainingDate": "2025-05-01"},
        )
        events = extract_events([project])
        assert [e.field_name for e in events] == [
            "launchDate", "trainingDate", "firstPartsOrderDate", "bomCompletionDate",
        ]

    def test_same_day_same_category_by_project_then_field(self):
        projects = [
            _project("P2", stage1={"massProductionDate": "2025-05-01"}),
            _project("P1", stage1={"massProductionDate": "2025-05-01", "launchDate": "2025-05-01"}),
        ]
        events = extract_events(projects)
        assert [e.event_id for e in events] == [
            "P1_launchDate", "P1_massProductionDate", "P2_massProductionDate",
        ]

    def test_idempotent(self, scenario_project, overdue_projects):
        projects = [scenario_project, *overdue_projects]
        snapshot = copy.deepcopy(projects)
        first = extract_events(projects)
        second = extract_events(projects)
        assert first == second
        assert [e.to_dict() for e in first] == [e.to_dict() for e in second]
        assert projects == snapshot

    def test_english_labels(self, scenario_project):
        events = extract_events([scenario_project], language="en")
        assert events[0].label == "Launch date"

    def test_to_dict_shape(self, scenario_project):
        data = extract_events([scenario_project])[0].to_dict()
        assert data == {
            "id": "PRJ-001_launchDate",
            "projectId": "PRJ-001",
            "projectName": "Water purifier",
            "modelName": "WP-200",
            "stage": "stage1",
            "type": "launchDate",
            "label": "출시예정일",
            "date": "2025-04-01",
            "isExecuted": True,
            "category": "milestone",
            "color": "bg-blue-500",
        }

    def test_missing_stage_is_tolerated(self):
        project = {"id": "P", "name": "P", "stage1": {"launchDate": "2025-01-01"}}
        assert len(extract_events([project])) == 1
