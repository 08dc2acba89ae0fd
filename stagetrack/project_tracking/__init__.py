"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    STAGETRACK — PROJECT TRACKING MODULE
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Stage-level bookkeeping for manufacturing projects.

A PROJECT passes through three sequential stages:
- stage1: basic information (product group, manufacturer, launch/mass production dates)
- stage2: production readiness (pilot production, tech transfer, training)
- stage3: service readiness (BOM, pricing, parts ordering and receipt)

This module provides:
1. Stage schema registry (required/optional fields, date ordering)
2. Project data model and builder
3. Weighted completion percentages per stage and overall
4. Temporal consistency validation of stage dates
5. Field edit entry point and caller-owned debounced saves

ARCHITECTURE
════════════

    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    PROJECT TRACKING LAYER                                │
    │                                                                          │
    │  ┌──────────────┐  ┌──────────────┐  ┌──────────────┐  ┌──────────────┐ │
    │  │ stage_schema │  │ progress     │  │ date_        │  │ edit_service │ │
    │  │              │  │ _engine      │  │ validation   │  │              │ │
    │  │ • FieldSpec  │  │ • stage %    │  │ • required   │  │ • apply_edit │ │
    │  │ • registry   │  │ • overall %  │  │ • ceiling    │  │ • debounce   │ │
    │  │              │  │ • portfolio  │  │ • ordering   │  │              │ │
    │  └──────────────┘  └──────────────┘  └──────────────┘  └──────────────┘ │
    └────────────────────────────────┬────────────────────────────────────────┘
                                     │
    ┌────────────────────────────────▼────────────────────────────────────────┐
    │                           MILESTONES                                     │
    │              (events, D-Day, calendar exports)                           │
    └─────────────────────────────────────────────────────────────────────────┘
"""

from .stage_schema import (
    DEFAULT_REGISTRY,
    STAGE_NAMES,
    FieldKind,
    FieldSpec,
    StageRequirements,
    StageSchemaRegistry,
    date_field,
    get_required_fields,
    plain_field,
)
from .project_model import (
    Project,
    as_project,
    create_project,
)
from .progress_engine import (
    PortfolioProgress,
    ProgressScore,
    StageProgressBreakdown,
    compute_overall_progress,
    compute_portfolio_progress,
    compute_stage_progress,
    explain_stage_progress,
    progress_dataframe,
    round_half_up,
)
from .date_validation import (
    DateValidationIssue,
    IssueCode,
    OrderingRule,
    check_date_field,
    check_field,
    validate_date_field,
    validate_field,
    validate_project,
)
from .edit_service import (
    DebouncedSaveScheduler,
    FieldEditResult,
    apply_field_edit,
    edit_key,
)

__all__ = [
    # Schema
    "DEFAULT_REGISTRY",
    "STAGE_NAMES",
    "FieldKind",
    "FieldSpec",
    "StageRequirements",
    "StageSchemaRegistry",
    "date_field",
    "plain_field",
    "get_required_fields",
    # Model
    "Project",
    "as_project",
    "create_project",
    # Progress
    "ProgressScore",
    "StageProgressBreakdown",
    "PortfolioProgress",
    "compute_stage_progress",
    "compute_overall_progress",
    "explain_stage_progress",
    "compute_portfolio_progress",
    "progress_dataframe",
    "round_half_up",
    # Validation
    "DateValidationIssue",
    "IssueCode",
    "OrderingRule",
    "check_date_field",
    "check_field",
    "validate_date_field",
    "validate_field",
    "validate_project",
    # Edits
    "FieldEditResult",
    "apply_field_edit",
    "DebouncedSaveScheduler",
    "edit_key",
]
