"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    STAGETRACK — STAGE SCHEMA REGISTRY
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Static declaration of the fields each project stage must carry.

FIELD KINDS
═══════════

1. PLAIN: a text attribute, "filled" iff non-empty after trimming.

2. DATE_WITH_EXECUTION: an ISO date paired with a boolean sibling flag
   (`<field>Executed`) that records whether the dated task was carried out.

Every field is either REQUIRED (counted by the progress calculator) or
OPTIONAL (displayed, exported, never scored). A date field may declare a
PREDECESSOR in the same stage; the temporal validator derives its ordering
table from these declarations.

STAGES
══════

    stage1  basic information       (기본정보)
    stage2  production readiness    (생산준비)
    stage3  service readiness       (서비스준비)

The registry is configuration, not computed state: every container here is
immutable and safe to share between callers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

STAGE_NAMES: Tuple[str, ...] = ("stage1", "stage2", "stage3")
NOTES_FIELD = "notes"


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# FIELD SPECS
# ════════════════════════════════════════════════════════════════════════════════════════════════════

class FieldKind(str, Enum):
    """Shape of a stage field."""
    PLAIN = "plain"
    DATE_WITH_EXECUTION = "date_with_execution"


@dataclass(frozen=True)
class FieldSpec:
    """
    One row of the registry.

    Attributes:
        name: Field key inside the stage mapping
        kind: PLAIN or DATE_WITH_EXECUTION
        required: Whether the field counts toward stage progress
        labels: Display label per language code
        executed_field: Sibling boolean key (date fields only)
        predecessor: Date field in the same stage that must not come later
        strict_order: Predecessor must be strictly earlier (no same-day)
    """
    name: str
    kind: FieldKind
    required: bool
    labels: Mapping[str, str] = field(default_factory=dict)
    executed_field: Optional[str] = None
    predecessor: Optional[str] = None
    strict_order: bool = False

    @property
    def is_date(self) -> bool:
        return self.kind == FieldKind.DATE_WITH_EXECUTION

    def label(self, language: str = "ko") -> str:
        return self.labels.get(language) or self.labels.get("en") or self.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "required": self.required,
            "labels": dict(self.labels),
            "executed_field": self.executed_field,
            "predecessor": self.predecessor,
            "strict_order": self.strict_order,
        }


def plain_field(name: str, ko: str, en: str, required: bool = True) -> FieldSpec:
    return FieldSpec(
        name=name,
        kind=FieldKind.PLAIN,
        required=required,
        labels=MappingProxyType({"ko": ko, "en": en}),
    )


def date_field(
    name: str,
    ko: str,
    en: str,
    required: bool = True,
    predecessor: Optional[str] = None,
    strict_order: bool = False,
) -> FieldSpec:
    # The executed sibling is resolved once, here; nothing downstream builds key names.
    return FieldSpec(
        name=name,
        kind=FieldKind.DATE_WITH_EXECUTION,
        required=required,
        labels=MappingProxyType({"ko": ko, "en": en}),
        executed_field=f"{name}Executed",
        predecessor=predecessor,
        strict_order=strict_order,
    )


@dataclass(frozen=True)
class StageRequirements:
    """Required/optional field names for one stage."""
    required: Tuple[str, ...] = ()
    required_dates: Tuple[str, ...] = ()
    optional: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.required or self.required_dates or self.optional)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "required": list(self.required),
            "required_dates": list(self.required_dates),
            "optional": list(self.optional),
        }


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# REGISTRY
# ════════════════════════════════════════════════════════════════════════════════════════════════════

class StageSchemaRegistry:
    """
    Read-only lookup over the per-stage field tables.

    Unknown stage names never raise: they resolve to empty field tables so
    that every consumer degrades to a zero score.
    """

    def __init__(
        self,
        stages: Mapping[str, Iterable[FieldSpec]],
        stage_labels: Optional[Mapping[str, Mapping[str, str]]] = None,
    ):
        tables: Dict[str, Tuple[FieldSpec, ...]] = {}
        for stage_name, specs in stages.items():
            specs = tuple(specs)
            names = [spec.name for spec in specs]
            if len(names) != len(set(names)):
                raise ValueError(f"Duplicate field names in {stage_name}: {names}")
            for spec in specs:
                if spec.is_date and not spec.executed_field:
                    raise ValueError(f"Date field {stage_name}.{spec.name} has no executed flag")
                if spec.predecessor and spec.predecessor not in names:
                    raise ValueError(
                        f"Predecessor {spec.predecessor} of {stage_name}.{spec.name} is not declared"
                    )
            tables[stage_name] = specs

        self._stages = MappingProxyType(tables)
        self._index = MappingProxyType({
            stage_name: MappingProxyType({spec.name: spec for spec in specs})
            for stage_name, specs in tables.items()
        })
        self._stage_labels = MappingProxyType(
            {k: MappingProxyType(dict(v)) for k, v in (stage_labels or {}).items()}
        )

    @property
    def stage_names(self) -> Tuple[str, ...]:
        return tuple(self._stages.keys())

    def fields(self, stage_name: str) -> Tuple[FieldSpec, ...]:
        return self._stages.get(stage_name, ())

    def get_field(self, stage_name: str, field_name: str) -> Optional[FieldSpec]:
        index = self._index.get(stage_name)
        if index is None:
            return None
        return index.get(field_name)

    def date_fields(self, stage_name: str) -> Tuple[FieldSpec, ...]:
        return tuple(spec for spec in self.fields(stage_name) if spec.is_date)

    def stage_of(self, field_name: str) -> Optional[str]:
        for stage_name, index in self._index.items():
            if field_name in index:
                return stage_name
        return None

    def stage_label(self, stage_name: str, language: str = "ko") -> str:
        labels = self._stage_labels.get(stage_name, {})
        return labels.get(language) or labels.get("en") or stage_name

    def get_required_fields(self, stage_name: str) -> StageRequirements:
        """
        Required plain fields, required date fields and optional fields of a stage.

        Returns empty lists for unknown stage names.
        """
        specs = self.fields(stage_name)
        if not specs:
            logger.debug(f"No schema declared for stage '{stage_name}'")
        return StageRequirements(
            required=tuple(s.name for s in specs if s.required and not s.is_date),
            required_dates=tuple(s.name for s in specs if s.required and s.is_date),
            optional=tuple(s.name for s in specs if not s.required),
        )

    def blank_stage(self, stage_name: str) -> Dict[str, Any]:
        """Empty stage mapping: blank values, executed flags False, blank notes."""
        stage: Dict[str, Any] = {}
        for spec in self.fields(stage_name):
            stage[spec.name] = ""
            if spec.is_date:
                stage[spec.executed_field] = False
        stage[NOTES_FIELD] = ""
        return stage

    def to_dict(self) -> Dict[str, Any]:
        return {
            stage_name: {
                "label": dict(self._stage_labels.get(stage_name, {})),
                "fields": [spec.to_dict() for spec in specs],
                **self.get_required_fields(stage_name).to_dict(),
            }
            for stage_name, specs in self._stages.items()
        }


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# DEFAULT SCHEMA
# ════════════════════════════════════════════════════════════════════════════════════════════════════

STAGE1_FIELDS: Tuple[FieldSpec, ...] = (
    plain_field("productGroup", "제품군", "Product group"),
    # Mirrored by Project.model_name, so not scored here.
    plain_field("modelName", "모델명", "Model name", required=False),
    plain_field("manufacturer", "제조사", "Manufacturer"),
    plain_field("vendor", "벤더사", "Vendor", required=False),
    plain_field("derivativeModel", "파생모델", "Derivative model", required=False),
    date_field("launchDate", "출시예정일", "Launch date"),
    plain_field("productManager", "상품개발 담당자", "Product manager"),
    plain_field("mechanicalEngineer", "연구소 담당자 (기구)", "Mechanical engineer", required=False),
    plain_field("circuitEngineer", "연구소 담당자 (회로)", "Circuit engineer", required=False),
    date_field(
        "massProductionDate", "양산예정일", "Mass production date",
        predecessor="launchDate", strict_order=True,
    ),
)

STAGE2_FIELDS: Tuple[FieldSpec, ...] = (
    date_field("pilotProductionDate", "파일럿생산일", "Pilot production date"),
    date_field(
        "techTransferDate", "기술이전일", "Tech transfer date",
        predecessor="pilotProductionDate",
    ),
    plain_field("installationParty", "설치 주체", "Installation party"),
    plain_field("serviceParty", "서비스 주체", "Service party"),
    date_field("trainingDate", "교육예정일", "Training date"),
    date_field("pilotReceiveDate", "파일럿입고일", "Pilot receipt date", required=False),
    date_field("orderAcceptanceDate", "수주접수일", "Order acceptance date", required=False),
    plain_field("userManualUpload", "사용자 설명서", "User manual", required=False),
    plain_field("techManualUpload", "기술교본", "Technical manual", required=False),
)

STAGE3_FIELDS: Tuple[FieldSpec, ...] = (
    date_field(
        "firstPartsOrderDate", "1차부품발주일", "First parts order date",
        predecessor="priceRegistrationDate",
    ),
    plain_field("bomManager", "BOM 구성 담당자", "BOM manager"),
    date_field("bomCompletionDate", "BOM완성일", "BOM completion date"),
    plain_field("priceManager", "단가 등록 담당자", "Price manager"),
    date_field(
        "priceRegistrationDate", "단가등록일", "Price registration date",
        predecessor="bomCompletionDate",
    ),
    date_field(
        "partsReceiptDate", "부품입고일", "Parts receipt date",
        predecessor="firstPartsOrderDate",
    ),
    plain_field("partsReceiptManager", "부품 입고 확인 담당자", "Parts receipt manager"),
    date_field("branchOrderGuideDate", "지점발주안내일", "Branch order guide date"),
    date_field("initialProductionDate", "최초양산일", "Initial production date", required=False),
)

STAGE_LABELS: Mapping[str, Mapping[str, str]] = {
    "stage1": {"ko": "1단계 (기본정보)", "en": "Stage 1 (Basic info)"},
    "stage2": {"ko": "2단계 (생산준비)", "en": "Stage 2 (Production readiness)"},
    "stage3": {"ko": "3단계 (서비스준비)", "en": "Stage 3 (Service readiness)"},
}

DEFAULT_REGISTRY = StageSchemaRegistry(
    {
        "stage1": STAGE1_FIELDS,
        "stage2": STAGE2_FIELDS,
        "stage3": STAGE3_FIELDS,
    },
    stage_labels=STAGE_LABELS,
)


def get_required_fields(
    stage_name: str,
    registry: Optional[StageSchemaRegistry] = None,
) -> StageRequirements:
    """Module-level shortcut over the default registry."""
    return (registry or DEFAULT_REGISTRY).get_required_fields(stage_name)
