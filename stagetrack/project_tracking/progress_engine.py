"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    STAGETRACK — PROGRESS ENGINE
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Weighted completion percentage per stage and per project.

SCORING
═══════

For a stage s with required date fields D(s) and required plain fields T(s):

    total_s    = |D(s)| + |T(s)|

    achieved_s = Σ_{d ∈ D(s)} ( 0.5 · [date(d) non-blank] + 0.5 · [executed(d) is True] )
               + Σ_{t ∈ T(s)} [value(t) non-blank after trimming]

    P_s        = round_half_up( clamp( achieved_s / total_s · 100, 0, 100 ) )      (0 if total_s = 0)

The execution half-credit is NOT gated on the date being present: an
executed flag with a blank date still earns 0.5. Optional fields and notes
never count.

Project score:

    P_overall  = round_half_up( clamp( (P_1 + P_2 + P_3) / 3, 0, 100 ) )

A project missing any of its three stage objects scores 0 everywhere.

PORTFOLIO
═════════

    avg_overall        = mean_p P_overall(p)
    by_current_stage   = count of projects by first stage with P_s < 100
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

import numpy as np
import pandas as pd

from ..date_normalizer import is_blank
from .project_model import Project, ProjectLike, as_project
from .stage_schema import DEFAULT_REGISTRY, STAGE_NAMES, StageSchemaRegistry

logger = logging.getLogger(__name__)

DATE_CREDIT = 0.5
EXECUTION_CREDIT = 0.5
PLAIN_CREDIT = 1.0


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (Math.round semantics)."""
    return int(math.floor(value + 0.5))


def clamp_percentage(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# DATA STRUCTURES
# ════════════════════════════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProgressScore:
    """Per-stage and overall completion, integers in [0, 100]."""
    overall: int = 0
    stage1: int = 0
    stage2: int = 0
    stage3: int = 0

    def stage(self, stage_name: str) -> int:
        return getattr(self, stage_name) if stage_name in STAGE_NAMES else 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "overall": self.overall,
            "stage1": self.stage1,
            "stage2": self.stage2,
            "stage3": self.stage3,
        }


@dataclass
class StageProgressBreakdown:
    """
    Scoring detail for one stage.

    Attributes:
        stage: Stage name
        total: Sum of available credits
        achieved: Sum of earned credits
        percentage: Final integer score
        missing_fields: Required fields with no value (plain or date)
        unexecuted_dates: Required dates whose executed flag is not True
    """
    stage: str
    total: float = 0.0
    achieved: float = 0.0
    percentage: int = 0
    missing_fields: List[str] = field(default_factory=list)
    unexecuted_dates: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage,
            "total": round(self.total, 2),
            "achieved": round(self.achieved, 2),
            "percentage": self.percentage,
            "missing_fields": list(self.missing_fields),
            "unexecuted_dates": list(self.unexecuted_dates),
        }


@dataclass
class PortfolioProgress:
    """Progress aggregated over a collection of projects."""
    timestamp: str
    total_projects: int = 0
    completed_projects: int = 0
    avg_overall: float = 0.0
    avg_stage1: float = 0.0
    avg_stage2: float = 0.0
    avg_stage3: float = 0.0
    fully_complete: int = 0
    not_started: int = 0
    by_current_stage: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "total_projects": self.total_projects,
            "completed_projects": self.completed_projects,
            "avg_overall": round(self.avg_overall, 1),
            "avg_stage1": round(self.avg_stage1, 1),
            "avg_stage2": round(self.avg_stage2, 1),
            "avg_stage3": round(self.avg_stage3, 1),
            "fully_complete": self.fully_complete,
            "not_started": self.not_started,
            "by_current_stage": dict(self.by_current_stage),
        }


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# STAGE PROGRESS
# ════════════════════════════════════════════════════════════════════════════════════════════════════

def explain_stage_progress(
    project: ProjectLike,
    stage_name: str,
    registry: Optional[StageSchemaRegistry] = None,
) -> StageProgressBreakdown:
    """
    Score one stage and report what is still missing.

    Never raises for data problems: an absent or non-mapping stage scores 0.
    """
    registry = registry or DEFAULT_REGISTRY
    project = as_project(project)
    breakdown = StageProgressBreakdown(stage=stage_name)

    stage = project.stage(stage_name)
    if not isinstance(stage, Mapping):
        return breakdown

    for spec in registry.fields(stage_name):
        if not spec.required:
            continue

        value = stage.get(spec.name)
        breakdown.total += 1.0

        if spec.is_date:
            if not is_blank(value):
                breakdown.achieved += DATE_CREDIT
            else:
                breakdown.missing_fields.append(spec.name)
            # Execution credit is independent of the date being present.
            if stage.get(spec.executed_field) is True:
                breakdown.achieved += EXECUTION_CREDIT
            else:
                breakdown.unexecuted_dates.append(spec.name)
        else:
            if not is_blank(value):
                breakdown.achieved += PLAIN_CREDIT
            else:
                breakdown.missing_fields.append(spec.name)

    percentage = (breakdown.achieved / breakdown.total) * 100 if breakdown.total > 0 else 0
    breakdown.percentage = clamp_percentage(percentage)

    logger.debug(
        f"[progress] {project.project_id}/{stage_name}: "
        f"{breakdown.achieved:.1f}/{breakdown.total:.1f} -> {breakdown.percentage}%"
    )
    return breakdown


def compute_stage_progress(
    project: ProjectLike,
    stage_name: str,
    registry: Optional[StageSchemaRegistry] = None,
) -> int:
    """Integer completion [0, 100] of one stage."""
    return explain_stage_progress(project, stage_name, registry).percentage


def compute_overall_progress(
    project: ProjectLike,
    registry: Optional[StageSchemaRegistry] = None,
) -> ProgressScore:
    """
    Stage scores plus their rounded mean.

    Projects missing any of the three stage objects score 0 everywhere.
    """
    project = as_project(project)
    if not project.is_valid:
        logger.debug(f"[progress] invalid project {project.project_id!r}, scoring 0")
        return ProgressScore()

    scores = {s: compute_stage_progress(project, s, registry) for s in STAGE_NAMES}
    overall = clamp_percentage(sum(scores.values()) / len(STAGE_NAMES))

    return ProgressScore(overall=overall, **scores)


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# PORTFOLIO
# ════════════════════════════════════════════════════════════════════════════════════════════════════

def current_stage(score: ProgressScore) -> str:
    """First stage below 100%, or 'done'."""
    for stage_name in STAGE_NAMES:
        if score.stage(stage_name) < 100:
            return stage_name
    return "done"


def progress_dataframe(
    projects: Iterable[ProjectLike],
    registry: Optional[StageSchemaRegistry] = None,
) -> pd.DataFrame:
    """One row of scores per project."""
    records = []
    for raw in projects:
        project = as_project(raw)
        score = compute_overall_progress(project, registry)
        records.append({
            "project_id": project.project_id,
            "name": project.name,
            "model_name": project.display_model_name,
            "completed": project.completed,
            **score.to_dict(),
            "current_stage": current_stage(score),
        })

    columns = [
        "project_id", "name", "model_name", "completed",
        "overall", "stage1", "stage2", "stage3", "current_stage",
    ]
    return pd.DataFrame(records, columns=columns)


def compute_portfolio_progress(
    projects: Iterable[ProjectLike],
    registry: Optional[StageSchemaRegistry] = None,
) -> PortfolioProgress:
    """
    Aggregate progress across projects for dashboards.

    Args:
        projects: Projects or raw mappings
        registry: Schema registry (default registry if omitted)

    Returns:
        PortfolioProgress with averages and stage distribution
    """
    df = progress_dataframe(projects, registry)
    summary = PortfolioProgress(
        timestamp=datetime.now().isoformat(),
        total_projects=len(df),
        by_current_stage={s: 0 for s in (*STAGE_NAMES, "done")},
    )

    if df.empty:
        return summary

    summary.completed_projects = int(df["completed"].sum())
    summary.avg_overall = float(np.mean(df["overall"]))
    summary.avg_stage1 = float(np.mean(df["stage1"]))
    summary.avg_stage2 = float(np.mean(df["stage2"]))
    summary.avg_stage3 = float(np.mean(df["stage3"]))
    summary.fully_complete = int((df["overall"] >= 100).sum())
    summary.not_started = int((df["overall"] == 0).sum())

    for stage_name, count in df["current_stage"].value_counts().items():
        summary.by_current_stage[stage_name] = int(count)

    logger.info(
        f"Portfolio progress over {summary.total_projects} projects: "
        f"avg overall {summary.avg_overall:.1f}%"
    )
    return summary


def progress_by_project(
    projects: Iterable[ProjectLike],
    registry: Optional[StageSchemaRegistry] = None,
) -> Dict[str, ProgressScore]:
    """Map of project id to ProgressScore."""
    result: Dict[str, ProgressScore] = {}
    for raw in projects:
        project = as_project(raw)
        result[project.project_id] = compute_overall_progress(project, registry)
    return result
