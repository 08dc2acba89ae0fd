"""
════════════════════════════════════════════════════════════════════════════════════════════════════
PROJECT TRACKING API - Endpoints de progresso e validação de estágios
════════════════════════════════════════════════════════════════════════════════════════════════════

API REST (stateless) para:
- Schema dos estágios (campos obrigatórios/opcionais)
- Progresso por projeto e por portfólio
- Validação temporal de datas
- Aplicação de uma edição de campo com recálculo

Nada é persistido: cada endpoint é uma função pura do corpo do pedido.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException

from ..models_common import (
    FieldEditRequest,
    FieldEditResponse,
    ProgressResponse,
    ProjectRequest,
    ProjectsRequest,
    ValidationResponse,
)
from .date_validation import DateValidationIssue, check_field, validate_project
from .edit_service import apply_field_edit
from .progress_engine import (
    compute_overall_progress,
    compute_portfolio_progress,
    explain_stage_progress,
    progress_dataframe,
)
from .project_model import as_project
from .stage_schema import DEFAULT_REGISTRY

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tracking", tags=["Project Tracking"])


def _validation_response(issue: Optional[DateValidationIssue] = None) -> ValidationResponse:
    if issue is None:
        return ValidationResponse(valid=True)
    return ValidationResponse(
        valid=False,
        message=issue.message,
        code=issue.code.value,
        related_field=issue.related_field,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# SCHEMA
# ═══════════════════════════════════════════════════════════════════════════════

@router.get("/schema", summary="Stage field schema")
async def get_schema() -> Dict[str, Any]:
    return DEFAULT_REGISTRY.to_dict()


@router.get("/schema/{stage}", summary="Field schema of one stage")
async def get_stage_schema(stage: str) -> Dict[str, Any]:
    if stage not in DEFAULT_REGISTRY.stage_names:
        raise HTTPException(status_code=404, detail=f"Unknown stage: {stage}")
    return DEFAULT_REGISTRY.to_dict()[stage]


# ═══════════════════════════════════════════════════════════════════════════════
# PROGRESS
# ═══════════════════════════════════════════════════════════════════════════════

@router.post("/progress", summary="Progress of one project")
async def project_progress(request: ProjectRequest) -> Dict[str, Any]:
    """
    Progresso por estágio e global, mais o que falta em cada estágio.
    """
    project = as_project(request.project)
    score = compute_overall_progress(project)
    return {
        "project_id": project.project_id,
        "progress": ProgressResponse(**score.to_dict()).model_dump(),
        "stages": {
            stage: explain_stage_progress(project, stage).to_dict()
            for stage in DEFAULT_REGISTRY.stage_names
        },
    }


@router.post("/portfolio", summary="Progress across projects")
async def portfolio_progress(request: ProjectsRequest) -> Dict[str, Any]:
    summary = compute_portfolio_progress(request.projects)
    rows = progress_dataframe(request.projects).to_dict(orient="records")
    return {"summary": summary.to_dict(), "projects": rows}


# ═══════════════════════════════════════════════════════════════════════════════
# VALIDATION / EDIT
# ═══════════════════════════════════════════════════════════════════════════════

@router.post("/validate", summary="Validate a candidate field value")
async def validate_field_value(request: FieldEditRequest) -> ValidationResponse:
    issue = check_field(
        request.project, request.stage, request.field, request.value,
        language=request.language,
    )
    return _validation_response(issue)


@router.post("/validate/project", summary="Re-check every stored date")
async def validate_whole_project(request: ProjectRequest) -> Dict[str, Any]:
    issues = validate_project(request.project, language=request.language)
    return {"valid": not issues, "issues": [i.to_dict() for i in issues]}


@router.post("/edit", summary="Apply a field edit and recompute progress")
async def edit_field(request: FieldEditRequest) -> FieldEditResponse:
    """
    Aplica o valor mesmo que a validação reporte um problema; o cliente decide
    se grava. O projeto devolvido é uma cópia com updatedAt atualizado.
    """
    result = apply_field_edit(
        request.project, request.stage, request.field, request.value,
        language=request.language,
    )
    return FieldEditResponse(
        project=result.project.to_dict(),
        validation=_validation_response(result.validation),
        applied=result.applied,
        stage_progress=result.stage_progress,
        progress=ProgressResponse(**result.progress.to_dict()),
    )
