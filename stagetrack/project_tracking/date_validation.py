"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    STAGETRACK — TEMPORAL CONSISTENCY VALIDATOR
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Cross-field ordering checks for stage dates.

RULES (first violation wins)
════════════════════════════

1. REQUIRED:      required field with a blank candidate
2. INVALID_FORMAT: candidate does not parse to a calendar date
3. CEILING:       any stage2/stage3 date later than stage1.massProductionDate
4. ORDERING:      predecessor/successor pairs declared in the registry

       stage1   launchDate            <  massProductionDate
       stage2   pilotProductionDate   <= techTransferDate
       stage3   bomCompletionDate     <= priceRegistrationDate
                priceRegistrationDate <= firstPartsOrderDate
                firstPartsOrderDate   <= partsReceiptDate

   A successor candidate is checked against the stored predecessor. Only
   the strict stage1 pair is also checked from the other end (a launchDate
   candidate against the stored massProductionDate).

Results are advisory. The validator never raises for bad data and never
touches the project; callers decide whether to block or merely warn.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..date_normalizer import is_blank, parse_date
from ..engine_config import Language, resolve_language
from .project_model import ProjectLike, as_project
from .stage_schema import DEFAULT_REGISTRY, FieldSpec, StageSchemaRegistry

logger = logging.getLogger(__name__)

CEILING_STAGE = "stage1"
CEILING_FIELD = "massProductionDate"
CEILING_APPLIES_TO: Tuple[str, ...] = ("stage2", "stage3")


class IssueCode(str, Enum):
    REQUIRED = "required"
    INVALID_FORMAT = "invalid_format"
    AFTER_MASS_PRODUCTION = "after_mass_production"
    ORDERING = "ordering"
    UNKNOWN_STAGE = "unknown_stage"


_MESSAGES: Dict[IssueCode, Dict[Language, str]] = {
    IssueCode.REQUIRED: {
        Language.KO: "필수 입력 항목입니다.",
        Language.EN: "This field is required.",
    },
    IssueCode.INVALID_FORMAT: {
        Language.KO: "올바른 날짜 형식이 아닙니다.",
        Language.EN: "Not a valid date.",
    },
    IssueCode.AFTER_MASS_PRODUCTION: {
        Language.KO: "{field}은(는) 양산 예정일({ceiling}) 이전이어야 합니다.",
        Language.EN: "{field} must not be later than the mass production date ({ceiling}).",
    },
    IssueCode.UNKNOWN_STAGE: {
        Language.KO: "알 수 없는 단계입니다: {stage}",
        Language.EN: "Unknown stage: {stage}",
    },
}

_ORDERING_MESSAGES: Dict[Tuple[bool, bool], Dict[Language, str]] = {
    # (candidate_is_successor, strict)
    (True, False): {
        Language.KO: "{field}은(는) {other}({other_date}) 이후여야 합니다.",
        Language.EN: "{field} must not be earlier than {other} ({other_date}).",
    },
    (True, True): {
        Language.KO: "{field}은(는) {other}({other_date})보다 늦어야 합니다.",
        Language.EN: "{field} must be later than {other} ({other_date}).",
    },
    (False, True): {
        Language.KO: "{field}은(는) {other}({other_date})보다 빨라야 합니다.",
        Language.EN: "{field} must be earlier than {other} ({other_date}).",
    },
}


@dataclass(frozen=True)
class OrderingRule:
    """Predecessor must not come after successor (strictly before if strict)."""
    stage: str
    predecessor: str
    successor: str
    strict: bool = False


@dataclass(frozen=True)
class DateValidationIssue:
    """One advisory validation finding."""
    code: IssueCode
    stage: str
    field: str
    message: str
    related_field: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "stage": self.stage,
            "field": self.field,
            "related_field": self.related_field,
            "message": self.message,
        }


def build_ordering_rules(registry: Optional[StageSchemaRegistry] = None) -> Tuple[OrderingRule, ...]:
    """Derive the ordering table from `predecessor` declarations."""
    registry = registry or DEFAULT_REGISTRY
    rules = []
    for stage_name in registry.stage_names:
        for spec in registry.date_fields(stage_name):
            if spec.predecessor:
                rules.append(OrderingRule(
                    stage=stage_name,
                    predecessor=spec.predecessor,
                    successor=spec.name,
                    strict=spec.strict_order,
                ))
    return tuple(rules)


ORDERING_RULES: Tuple[OrderingRule, ...] = build_ordering_rules(DEFAULT_REGISTRY)


# ════════════════════════════════════════════════════════════════════════════════════════════════════
# VALIDATION
# ════════════════════════════════════════════════════════════════════════════════════════════════════

def _label(registry: StageSchemaRegistry, stage_name: str, field_name: str, language: Language) -> str:
    spec = registry.get_field(stage_name, field_name)
    return spec.label(language.value) if spec else field_name


def _stored_date(stage: Optional[Mapping[str, Any]], field_name: str) -> Optional[date]:
    if not isinstance(stage, Mapping):
        return None
    return parse_date(stage.get(field_name))


def _issue(
    code: IssueCode,
    stage_name: str,
    field_name: str,
    language: Language,
    related_field: Optional[str] = None,
    **fmt: Any,
) -> DateValidationIssue:
    return DateValidationIssue(
        code=code,
        stage=stage_name,
        field=field_name,
        related_field=related_field,
        message=_MESSAGES[code][language].format(**fmt),
    )


def check_date_field(
    project: ProjectLike,
    stage_name: str,
    field_name: str,
    candidate_value: Any,
    registry: Optional[StageSchemaRegistry] = None,
    language: Optional[str] = None,
) -> Optional[DateValidationIssue]:
    """
    Validate a candidate value for a date field against the stored project.

    Args:
        project: Current project snapshot (the candidate is not yet stored)
        stage_name: Stage owning the field
        field_name: Date field being edited
        candidate_value: Proposed value
        registry: Schema registry (default registry if omitted)
        language: Message language (configured default if omitted)

    Returns:
        The first violated rule as a DateValidationIssue, or None.
    """
    registry = registry or DEFAULT_REGISTRY
    lang = resolve_language(language)
    project = as_project(project)
    spec = registry.get_field(stage_name, field_name)
    label = _label(registry, stage_name, field_name, lang)

    # 1. required
    if is_blank(candidate_value):
        if spec is not None and spec.required:
            return _issue(IssueCode.REQUIRED, stage_name, field_name, lang, field=label)
        return None

    # 2. format
    candidate = parse_date(candidate_value)
    if candidate is None:
        return _issue(IssueCode.INVALID_FORMAT, stage_name, field_name, lang, field=label)

    # 3. mass production ceiling
    if stage_name in CEILING_APPLIES_TO:
        ceiling = _stored_date(project.stage(CEILING_STAGE), CEILING_FIELD)
        if ceiling is not None and candidate > ceiling:
            return _issue(
                IssueCode.AFTER_MASS_PRODUCTION, stage_name, field_name, lang,
                related_field=CEILING_FIELD, field=label, ceiling=ceiling.isoformat(),
            )

    # 4. intra-stage ordering
    stage = project.stage(stage_name)
    for rule in build_ordering_rules(registry):
        if rule.stage != stage_name:
            continue
        issue = _check_ordering(rule, field_name, candidate, stage, registry, lang)
        if issue is not None:
            return issue

    return None


def _check_ordering(
    rule: OrderingRule,
    field_name: str,
    candidate: date,
    stage: Optional[Mapping[str, Any]],
    registry: StageSchemaRegistry,
    language: Language,
) -> Optional[DateValidationIssue]:
    if field_name == rule.successor:
        other_field = rule.predecessor
        other = _stored_date(stage, other_field)
        if other is None:
            return None
        violated = candidate <= other if rule.strict else candidate < other
        is_successor = True
    elif field_name == rule.predecessor and rule.strict:
        other_field = rule.successor
        other = _stored_date(stage, other_field)
        if other is None:
            return None
        violated = candidate >= other
        is_successor = False
    else:
        return None

    if not violated:
        return None

    template = _ORDERING_MESSAGES[(is_successor, rule.strict)][language]
    return DateValidationIssue(
        code=IssueCode.ORDERING,
        stage=rule.stage,
        field=field_name,
        related_field=other_field,
        message=template.format(
            field=_label(registry, rule.stage, field_name, language),
            other=_label(registry, rule.stage, other_field, language),
            other_date=other.isoformat(),
        ),
    )


def validate_date_field(
    project: ProjectLike,
    stage_name: str,
    field_name: str,
    candidate_value: Any,
    registry: Optional[StageSchemaRegistry] = None,
    language: Optional[str] = None,
) -> Optional[str]:
    """Message of the first violated rule, or None when the value is acceptable."""
    issue = check_date_field(project, stage_name, field_name, candidate_value, registry, language)
    return issue.message if issue else None


def check_field(
    project: ProjectLike,
    stage_name: str,
    field_name: str,
    candidate_value: Any,
    registry: Optional[StageSchemaRegistry] = None,
    language: Optional[str] = None,
) -> Optional[DateValidationIssue]:
    """
    Validate any stage field.

    Date fields go through the full date rules; plain fields only get the
    required check. Unknown stages are reported, unknown fields pass.
    """
    registry = registry or DEFAULT_REGISTRY
    lang = resolve_language(language)

    if not registry.fields(stage_name):
        return _issue(IssueCode.UNKNOWN_STAGE, stage_name, field_name, lang, stage=stage_name)

    spec: Optional[FieldSpec] = registry.get_field(stage_name, field_name)
    if spec is not None and spec.is_date:
        return check_date_field(project, stage_name, field_name, candidate_value, registry, language)

    if spec is not None and spec.required and is_blank(candidate_value):
        return _issue(
            IssueCode.REQUIRED, stage_name, field_name, lang,
            field=spec.label(lang.value),
        )
    return None


def validate_field(
    project: ProjectLike,
    stage_name: str,
    field_name: str,
    candidate_value: Any,
    registry: Optional[StageSchemaRegistry] = None,
    language: Optional[str] = None,
) -> Optional[str]:
    issue = check_field(project, stage_name, field_name, candidate_value, registry, language)
    return issue.message if issue else None


def validate_project(
    project: ProjectLike,
    registry: Optional[StageSchemaRegistry] = None,
    language: Optional[str] = None,
) -> List[DateValidationIssue]:
    """
    Re-check every stored, non-blank date of a project.

    Blank dates are not reported here; missing data shows up as progress,
    not as validation issues.
    """
    registry = registry or DEFAULT_REGISTRY
    project = as_project(project)
    issues: List[DateValidationIssue] = []

    for stage_name in registry.stage_names:
        stage = project.stage(stage_name)
        if not isinstance(stage, Mapping):
            continue
        for spec in registry.date_fields(stage_name):
            value = stage.get(spec.name)
            if is_blank(value):
                continue
            issue = check_date_field(project, stage_name, spec.name, value, registry, language)
            if issue is not None:
                issues.append(issue)

    if issues:
        logger.debug(f"[validation] {project.project_id}: {len(issues)} date issue(s)")
    return issues
