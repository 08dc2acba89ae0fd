"""
═══════════════════════════════════════════════════════════════════════════════
                    STAGETRACK — Field Edit Service Tests
═══════════════════════════════════════════════════════════════════════════════

Run with: python -m pytest stagetrack/tests/test_edit_service.py -v
"""

import copy

import pytest

from stagetrack.project_tracking import (
    DebouncedSaveScheduler,
    IssueCode,
    Project,
    apply_field_edit,
    edit_key,
)


class FakeTimer:
    """Timer controlado manualmente pelo teste."""

    created = []

    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.started = False
        self.cancelled = False
        FakeTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.callback()


@pytest.fixture
def fake_timers():
    FakeTimer.created = []
    return FakeTimer.created


@pytest.fixture
def saves():
    return []


@pytest.fixture
def scheduler(saves, fake_timers):
    return DebouncedSaveScheduler(
        lambda key, payload: saves.append((key, payload)),
        delay_seconds=0.5,
        timer_factory=FakeTimer,
    )


class TestApplyFieldEdit:
    """Single field edit with recomputed progress."""

    def test_edit_updates_progress(self, scenario_project):
        result = apply_field_edit(scenario_project, "stage1", "massProductionDateExecuted", True)
        assert result.applied
        assert result.is_valid
        assert result.stage_progress == 100
        assert result.progress.stage1 == 100
        assert result.project.stage1["massProductionDateExecuted"] is True

    def test_input_is_not_mutated(self, scenario_project):
        before = copy.deepcopy(scenario_project)
        apply_field_edit(scenario_project, "stage1", "productGroup", "")
        assert scenario_project == before

    def test_updated_at_refreshed(self, scenario_project):
        result = apply_field_edit(scenario_project, "stage1", "vendor", "V")
        assert result.project.updated_at != scenario_project["updatedAt"]
        assert result.project.created_at == scenario_project["createdAt"]

    def test_invalid_value_is_still_applied(self, scenario_project):
        result = apply_field_edit(scenario_project, "stage3", "partsReceiptDate", "2025-06-15")
        assert result.applied
        assert result.validation.code == IssueCode.AFTER_MASS_PRODUCTION
        assert result.message is not None
        assert result.project.stage3["partsReceiptDate"] == "2025-06-15"

    def test_unknown_stage_leaves_project_unchanged(self, scenario_project):
        result = apply_field_edit(scenario_project, "stage4", "x", "y")
        assert not result.applied
        assert result.validation.code == IssueCode.UNKNOWN_STAGE
        assert result.project == Project.from_dict(scenario_project)

    def test_to_dict(self, scenario_project):
        data = apply_field_edit(scenario_project, "stage1", "productGroup", "G2").to_dict()
        assert data["valid"] is True
        assert data["project"]["stage1"]["productGroup"] == "G2"
        assert data["progress"]["stage1"] == 90


class TestDebouncedSaveScheduler:
    """Caller-owned per-key debouncer."""

    def test_burst_collapses_to_one_save(self, scheduler, saves, fake_timers):
        key = edit_key("PRJ-001", "stage1", "productGroup")
        scheduler.schedule(key, "a")
        scheduler.schedule(key, "ab")
        scheduler.schedule(key, "abc")

        assert [t.cancelled for t in fake_timers] == [True, True, False]
        fake_timers[-1].fire()

        assert saves == [(key, "abc")]
        assert scheduler.pending_keys == []

    def test_stale_callback_is_ignored(self, scheduler, saves, fake_timers):
        scheduler.schedule("k", 1)
        scheduler.schedule("k", 2)
        fake_timers[0].callback()
        assert saves == []
        assert scheduler.pending_keys == ["k"]

    def test_keys_are_independent(self, scheduler, saves, fake_timers):
        scheduler.schedule("a", 1)
        scheduler.schedule("b", 2)
        assert sorted(scheduler.pending_keys) == ["a", "b"]
        fake_timers[1].fire()
        assert saves == [("b", 2)]
        assert scheduler.pending_keys == ["a"]

    def test_flush_runs_pending_saves(self, scheduler, saves, fake_timers):
        scheduler.schedule("a", 1)
        scheduler.schedule("b", 2)
        assert scheduler.flush() == 2
        assert sorted(saves) == [("a", 1), ("b", 2)]
        assert all(t.cancelled for t in fake_timers)

    def test_flush_single_key(self, scheduler, saves):
        scheduler.schedule("a", 1)
        scheduler.schedule("b", 2)
        assert scheduler.flush("a") == 1
        assert saves == [("a", 1)]
        assert scheduler.pending_keys == ["b"]

    def test_cancel_drops_without_saving(self, scheduler, saves):
        scheduler.schedule("a", 1)
        assert scheduler.cancel() == 1
        assert scheduler.flush() == 0
        assert saves == []

    def test_delay_passed_to_timer(self, scheduler, fake_timers):
        scheduler.schedule("a", 1)
        assert fake_timers[0].delay == 0.5
        assert fake_timers[0].started

    def test_default_delay_from_config(self, monkeypatch):
        monkeypatch.setenv("STAGETRACK_SAVE_DEBOUNCE_MS", "250")
        scheduler = DebouncedSaveScheduler(lambda key, payload: None, timer_factory=FakeTimer)
        assert scheduler.delay_seconds == 0.25

    def test_save_errors_propagate_on_flush(self, fake_timers):
        def failing_save(key, payload):
            raise RuntimeError("store offline")

        scheduler = DebouncedSaveScheduler(failing_save, delay_seconds=0.1, timer_factory=FakeTimer)
        scheduler.schedule("a", 1)
        with pytest.raises(RuntimeError):
            scheduler.flush()

    def test_failed_save_does_not_drop_other_keys(self, fake_timers):
        """Uma gravação falhada não impede as restantes."""
        saved = []

        def save(key, payload):
            if key == "a":
                raise RuntimeError("store offline")
            saved.append((key, payload))

        scheduler = DebouncedSaveScheduler(save, delay_seconds=0.1, timer_factory=FakeTimer)
        scheduler.schedule("a", 1)
        scheduler.schedule("b", 2)

        with pytest.raises(RuntimeError, match="store offline"):
            scheduler.flush()

        assert saved == [("b", 2)]
        assert scheduler.pending_keys == []
