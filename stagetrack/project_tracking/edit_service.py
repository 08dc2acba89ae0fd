"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    STAGETRACK — FIELD EDIT SERVICE
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Entry point for a single field edit coming from an editing surface, plus a
caller-owned debouncer for coalescing saves.

FLOW
════

    (project, stage, field, value)
            │
            ├── validate_field      → advisory message (may be None)
            ├── project.with_field  → new Project (input untouched)
            └── progress engine     → stage % and overall score
            │
            ▼
    FieldEditResult

The value is applied even when validation reports an issue; blocking is a
decision of the editing surface. Nothing is persisted here.

DEBOUNCED SAVES
═══════════════

DebouncedSaveScheduler keeps one pending timer per key (typically
"<project id>:<stage>:<field>"). A new schedule() for the same key cancels
the previous timer, so a burst of keystrokes ends in a single save call.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .date_validation import DateValidationIssue, check_field
from .progress_engine import ProgressScore, compute_overall_progress, compute_stage_progress
from .project_model import Project, ProjectLike, as_project
from .stage_schema import DEFAULT_REGISTRY, STAGE_NAMES, StageSchemaRegistry
from ..engine_config import EngineSettings

logger = logging.getLogger(__name__)


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# FIELD EDIT
# ════════════════════════════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FieldEditResult:
    """
    Outcome of one field edit.

    Attributes:
        project: Updated project (unchanged when the stage is unknown)
        validation: Advisory issue, None when the value is acceptable
        stage_progress: Score of the edited stage after the edit
        progress: Overall score after the edit
        applied: Whether the value was written into the returned project
    """
    project: Project
    validation: Optional[DateValidationIssue]
    stage_progress: int
    progress: ProgressScore
    applied: bool = True

    @property
    def message(self) -> Optional[str]:
        return self.validation.message if self.validation else None

    @property
    def is_valid(self) -> bool:
        return self.validation is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project": self.project.to_dict(),
            "validation": self.validation.to_dict() if self.validation else None,
            "message": self.message,
            "valid": self.is_valid,
            "applied": self.applied,
            "stage_progress": self.stage_progress,
            "progress": self.progress.to_dict(),
        }


def apply_field_edit(
    project: ProjectLike,
    stage_name: str,
    field_name: str,
    new_value: Any,
    registry: Optional[StageSchemaRegistry] = None,
    language: Optional[str] = None,
) -> FieldEditResult:
    """
    Validate and apply one field edit, returning recomputed progress.

    Validation runs against the project as it was before the edit, so the
    candidate is compared with the other stored values.
    """
    registry = registry or DEFAULT_REGISTRY
    project = as_project(project)

    issue = check_field(project, stage_name, field_name, new_value, registry, language)

    if stage_name not in registry.stage_names or stage_name not in STAGE_NAMES:
        logger.warning(f"[edit] {project.project_id}: unknown stage '{stage_name}', edit ignored")
        return FieldEditResult(
            project=project,
            validation=issue,
            stage_progress=0,
            progress=compute_overall_progress(project, registry),
            applied=False,
        )

    updated = project.with_field(stage_name, field_name, new_value)
    stage_progress = compute_stage_progress(updated, stage_name, registry)
    progress = compute_overall_progress(updated, registry)

    if issue is not None:
        logger.debug(f"[edit] {project.project_id}/{stage_name}.{field_name}: {issue.code.value}")
    else:
        logger.debug(f"[edit] {project.project_id}/{stage_name}.{field_name} -> {stage_progress}%")

    return FieldEditResult(
        project=updated,
        validation=issue,
        stage_progress=stage_progress,
        progress=progress,
    )


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# DEBOUNCED SAVES
# ════════════════════════════════════════════════════════════════════════════════════════════════════

SaveCallback = Callable[[str, Any], None]
TimerFactory = Callable[[float, Callable[[], None]], Any]


def edit_key(project_id: str, stage_name: str, field_name: str) -> str:
    return f"{project_id}:{stage_name}:{field_name}"


class DebouncedSaveScheduler:
    """
    Per-key debouncer owned by the caller.

    Args:
        save: Called as save(key, payload) once the key has been idle
        delay_seconds: Idle window (configured default if omitted)
        timer_factory: Builds a startable/cancellable timer from
            (delay, callback); threading.Timer by default

    Usage:
        scheduler = DebouncedSaveScheduler(lambda key, payload: store.put(payload))
        scheduler.schedule(edit_key(pid, "stage1", "launchDate"), project)
        ...
        scheduler.flush()  # before shutdown
    """

    def __init__(
        self,
        save: SaveCallback,
        delay_seconds: Optional[float] = None,
        timer_factory: Optional[TimerFactory] = None,
    ):
        self._save = save
        self._delay = (
            delay_seconds if delay_seconds is not None
            else EngineSettings.get_config().save_debounce_seconds
        )
        self._timer_factory = timer_factory or threading.Timer
        self._lock = threading.Lock()
        self._pending: Dict[str, Tuple[Any, Any]] = {}

    @property
    def delay_seconds(self) -> float:
        return self._delay

    @property
    def pending_keys(self) -> List[str]:
        with self._lock:
            return list(self._pending.keys())

    def schedule(self, key: str, payload: Any) -> None:
        """(Re)start the idle window for `key`; the latest payload wins."""
        with self._lock:
            previous = self._pending.pop(key, None)
            if previous is not None:
                previous[0].cancel()
            timer = self._timer_factory(self._delay, lambda: self._fire(key, timer))
            if hasattr(timer, "daemon"):
                timer.daemon = True
            self._pending[key] = (timer, payload)
            timer.start()

    def flush(self, key: Optional[str] = None) -> int:
        """
        Run pending saves now. Returns the number of saves performed.

        Every due save is attempted; if any failed, the first error is
        re-raised after the others have run. Failed entries are not re-queued.
        """
        with self._lock:
            keys = [key] if key is not None else list(self._pending.keys())
            due = []
            for k in keys:
                entry = self._pending.pop(k, None)
                if entry is not None:
                    entry[0].cancel()
                    due.append((k, entry[1]))

        errors: List[Exception] = []
        for k, payload in due:
            try:
                self._run_save(k, payload)
            except Exception as e:
                errors.append(e)

        if errors:
            raise errors[0]
        return len(due)

    def cancel(self, key: Optional[str] = None) -> int:
        """Drop pending saves without running them."""
        with self._lock:
            keys = [key] if key is not None else list(self._pending.keys())
            dropped = 0
            for k in keys:
                entry = self._pending.pop(k, None)
                if entry is not None:
                    entry[0].cancel()
                    dropped += 1
        if dropped:
            logger.debug(f"[debounce] cancelled {dropped} pending save(s)")
        return dropped

    def _fire(self, key: str, timer: Any) -> None:
        with self._lock:
            entry = self._pending.get(key)
            # A newer schedule() replaced this timer; its own callback will save.
            if entry is None or entry[0] is not timer:
                return
            del self._pending[key]
        self._run_save(key, entry[1])

    def _run_save(self, key: str, payload: Any) -> None:
        try:
            self._save(key, payload)
            logger.debug(f"[debounce] saved {key}")
        except Exception as e:
            logger.error(f"[debounce] save failed for {key}: {e}")
            raise
