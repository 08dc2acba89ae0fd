"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    STAGETRACK — PROJECT MODEL
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Data model for tracked manufacturing projects.

DEFINITION
══════════

A PROJECT moves through three sequential stages. Each stage is a plain
mapping from field name to scalar value:

    stage1  basic information
    stage2  production readiness
    stage3  service readiness

The engine never mutates a project. Edits produce a new Project carrying a
copied stage mapping; persistence and concurrency between editors belong to
the caller.

WIRE SHAPE
──────────

    {
      "id": "PRJ-1718000000000",
      "name": "...",
      "modelName": "...",
      "completed": false,
      "createdAt": "2025-01-01T09:00:00Z",
      "updatedAt": "2025-01-02T09:00:00Z",
      "stage1": {...}, "stage2": {...}, "stage3": {...}
    }
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

from .stage_schema import DEFAULT_REGISTRY, STAGE_NAMES, StageSchemaRegistry

logger = logging.getLogger(__name__)

StageMap = Dict[str, Any]


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# PROJECT DATA MODEL
# ════════════════════════════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Project:
    """
    A tracked project.

    Attributes:
        project_id: Unique identifier
        name: Display name
        model_name: Product model name (optional)
        completed: Whether the project was closed out
        created_at: ISO 8601 creation timestamp
        updated_at: ISO 8601 last-update timestamp
        stage1/stage2/stage3: Stage mappings, None when absent
    """
    project_id: str
    name: str
    model_name: Optional[str] = None
    completed: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    stage1: Optional[StageMap] = None
    stage2: Optional[StageMap] = None
    stage3: Optional[StageMap] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_valid(self) -> bool:
        """All three stage objects present; id and name are not checked."""
        return all(isinstance(self.stage(s), Mapping) for s in STAGE_NAMES)

    @property
    def display_model_name(self) -> str:
        """Project-level model name, falling back to the stage1 field."""
        if self.model_name:
            return self.model_name
        stage1 = self.stage1 if isinstance(self.stage1, Mapping) else {}
        value = stage1.get("modelName")
        return str(value) if value else ""

    def stage(self, stage_name: str) -> Optional[StageMap]:
        if stage_name not in STAGE_NAMES:
            return None
        return getattr(self, stage_name)

    def with_field(self, stage_name: str, field_name: str, value: Any) -> "Project":
        """Return a copy with one stage field replaced and updated_at refreshed."""
        if stage_name not in STAGE_NAMES:
            raise KeyError(f"Unknown stage: {stage_name}")
        current = self.stage(stage_name)
        updated_stage = dict(current) if isinstance(current, Mapping) else {}
        updated_stage[field_name] = value
        return replace(self, **{stage_name: updated_stage, "updated_at": _utc_now_iso()})

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase wire shape."""
        data = dict(self.extra)
        data.update({
            "id": self.project_id,
            "name": self.name,
            "modelName": self.model_name,
            "completed": self.completed,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        })
        for stage_name in STAGE_NAMES:
            stage = self.stage(stage_name)
            data[stage_name] = dict(stage) if isinstance(stage, Mapping) else stage
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Project":
        """
        Deserialize from the wire shape.

        Accepts snake_case aliases (`project_id`, `model_name`, ...) as well.
        Stage values that are not mappings are kept as None so that the
        progress calculator scores them as 0%.
        """
        known = {
            "id", "project_id", "name", "modelName", "model_name", "completed",
            "createdAt", "created_at", "updatedAt", "updated_at", *STAGE_NAMES,
        }
        stages = {}
        for stage_name in STAGE_NAMES:
            raw = data.get(stage_name)
            if raw is not None and not isinstance(raw, Mapping):
                logger.warning(
                    f"Project {data.get('id')!r}: {stage_name} is {type(raw).__name__}, not a mapping"
                )
                raw = None
            stages[stage_name] = dict(raw) if raw is not None else None

        return cls(
            project_id=data.get("id", data.get("project_id")),
            name=data.get("name"),
            model_name=data.get("modelName", data.get("model_name")),
            completed=bool(data.get("completed", False)),
            created_at=data.get("createdAt", data.get("created_at")),
            updated_at=data.get("updatedAt", data.get("updated_at")),
            extra={k: v for k, v in data.items() if k not in known},
            **stages,
        )


ProjectLike = Union[Project, Mapping[str, Any]]


def as_project(project: ProjectLike) -> Project:
    """
    Coerce a Project or raw mapping into a Project.

    Anything else is a programming error and raises TypeError.
    """
    if isinstance(project, Project):
        return project
    if isinstance(project, Mapping):
        return Project.from_dict(project)
    raise TypeError(f"Expected Project or mapping, got {type(project).__name__}")


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# PROJECT BUILDER
# ════════════════════════════════════════════════════════════════════════════════════════════════════

def create_project(
    name: str,
    model_name: Optional[str] = None,
    project_id: Optional[str] = None,
    stage_data: Optional[Mapping[str, Mapping[str, Any]]] = None,
    registry: Optional[StageSchemaRegistry] = None,
) -> Project:
    """
    Build a new project with blank stage templates from the registry.

    Args:
        name: Display name
        model_name: Model name (optional)
        project_id: Identifier; defaults to PRJ-<epoch millis>
        stage_data: Initial values merged over the blank templates
        registry: Schema registry (default registry if omitted)
    """
    registry = registry or DEFAULT_REGISTRY
    stage_data = stage_data or {}
    now = _utc_now_iso()

    stages = {}
    for stage_name in STAGE_NAMES:
        stage = registry.blank_stage(stage_name)
        stage.update(stage_data.get(stage_name, {}))
        stages[stage_name] = stage

    project = Project(
        project_id=project_id or f"PRJ-{int(time.time() * 1000)}",
        name=name,
        model_name=model_name,
        completed=False,
        created_at=now,
        updated_at=now,
        **stages,
    )
    logger.info(f"Created project {project.project_id} ({name})")
    return project
