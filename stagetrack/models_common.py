"""
StageTrack - Common Models
==========================

Modelos Pydantic reutilizáveis para os pedidos e respostas da API.
Usados pelos routers de tracking e milestones para garantir consistência.

Os projetos viajam no formato camelCase do cliente (`id`, `modelName`,
`stage1`...) e são convertidos pelo motor; aqui só validamos o envelope.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .milestones.calendar_views import StatusFilter, ViewMode


_EXAMPLE_PROJECT = {
    "id": "PRJ-1718000000000",
    "name": "Water purifier WP-200",
    "modelName": "WP-200",
    "completed": False,
    "stage1": {
        "productGroup": "Water purifier",
        "manufacturer": "ACME",
        "productManager": "Kim",
        "launchDate": "2025-04-01",
        "launchDateExecuted": True,
        "massProductionDate": "2025-06-01",
        "massProductionDateExecuted": False,
    },
    "stage2": {},
    "stage3": {},
}


# ═══════════════════════════════════════════════════════════════════════════════
# PROJECT TRACKING
# ═══════════════════════════════════════════════════════════════════════════════

class ProjectRequest(BaseModel):
    """Pedido com um único projeto."""
    project: Dict[str, Any] = Field(..., description="Projeto no formato do cliente")
    language: Optional[str] = Field(None, description="ko | en (default configurado)")

    model_config = ConfigDict(json_schema_extra={"example": {"project": _EXAMPLE_PROJECT}})


class ProjectsRequest(BaseModel):
    """Pedido com uma lista de projetos."""
    projects: List[Dict[str, Any]] = Field(default_factory=list)
    language: Optional[str] = None


class FieldEditRequest(BaseModel):
    """Edição (ou validação) de um campo de um estágio."""
    project: Dict[str, Any]
    stage: str = Field(..., description="stage1 | stage2 | stage3")
    field: str = Field(..., description="Nome do campo no estágio")
    value: Any = Field(None, description="Valor candidato")
    language: Optional[str] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "project": _EXAMPLE_PROJECT,
            "stage": "stage3",
            "field": "partsReceiptDate",
            "value": "2025-06-15",
        }
    })


class ProgressResponse(BaseModel):
    """Progresso inteiro [0, 100] por estágio e global."""
    overall: int = Field(default=0, ge=0, le=100)
    stage1: int = Field(default=0, ge=0, le=100)
    stage2: int = Field(default=0, ge=0, le=100)
    stage3: int = Field(default=0, ge=0, le=100)


class ValidationResponse(BaseModel):
    """Resultado consultivo da validação de um campo."""
    valid: bool
    message: Optional[str] = None
    code: Optional[str] = None
    related_field: Optional[str] = None


class FieldEditResponse(BaseModel):
    """Projeto atualizado + validação + progresso recalculado."""
    project: Dict[str, Any]
    validation: ValidationResponse
    applied: bool
    stage_progress: int = Field(default=0, ge=0, le=100)
    progress: ProgressResponse


# ═══════════════════════════════════════════════════════════════════════════════
# MILESTONES
# ═══════════════════════════════════════════════════════════════════════════════

class CalendarFiltersModel(BaseModel):
    """Filtros do calendário (todos opcionais)."""
    stages: Optional[List[str]] = None
    status: StatusFilter = StatusFilter.ALL
    project_ids: Optional[List[str]] = None
    field_names: Optional[List[str]] = None
    search: Optional[str] = None


class EventsRequest(ProjectsRequest):
    """Extração de eventos com filtros e janela de vista opcionais."""
    filters: Optional[CalendarFiltersModel] = None
    view: ViewMode = ViewMode.LIST
    anchor: Optional[date] = Field(None, description="Dia de referência da vista (default: hoje)")
    today: Optional[date] = None


class DeadlinesRequest(ProjectsRequest):
    today: Optional[date] = Field(None, description="Dia de referência (default: hoje local)")


class NotificationsRequest(DeadlinesRequest):
    urgent_days: Optional[int] = Field(None, ge=0)
    reminder_days: Optional[int] = Field(None, ge=0)
    include_today: bool = True
    include_overdue: bool = True


class ExportOptionsModel(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None


class ExportRequest(DeadlinesRequest):
    """Exportação iCal/CSV."""
    options: ExportOptionsModel = Field(default_factory=ExportOptionsModel)
    filters: Optional[CalendarFiltersModel] = None


class EventsResponse(BaseModel):
    total: int
    events: List[Dict[str, Any]]
    stats: Dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
