"""
═══════════════════════════════════════════════════════════════════════════════
                    STAGETRACK — Stage Schema Registry Tests
═══════════════════════════════════════════════════════════════════════════════

Run with: python -m pytest stagetrack/tests/test_stage_schema.py -v
"""

import pytest

from stagetrack.project_tracking.stage_schema import (
    DEFAULT_REGISTRY,
    FieldKind,
    StageSchemaRegistry,
    date_field,
    get_required_fields,
    plain_field,
)


class TestRequiredFields:
    """Snapshot of the per-stage declarations."""

    def test_stage1(self):
        req = get_required_fields("stage1")
        assert req.required == ("productGroup", "manufacturer", "productManager")
        assert req.required_dates == ("launchDate", "massProductionDate")
        assert set(req.optional) == {
            "modelName", "vendor", "derivativeModel", "mechanicalEngineer", "circuitEngineer",
        }

    def test_stage2(self):
        req = get_required_fields("stage2")
        assert req.required == ("installationParty", "serviceParty")
        assert req.required_dates == ("pilotProductionDate", "techTransferDate", "trainingDate")
        assert set(req.optional) == {
            "pilotReceiveDate", "orderAcceptanceDate", "userManualUpload", "techManualUpload",
        }

    def test_stage3(self):
        req = get_required_fields("stage3")
        assert req.required == ("bomManager", "priceManager", "partsReceiptManager")
        assert set(req.required_dates) == {
            "firstPartsOrderDate", "bomCompletionDate", "priceRegistrationDate",
            "partsReceiptDate", "branchOrderGuideDate",
        }
        assert req.optional == ("initialProductionDate",)

    def test_unknown_stage_is_empty(self):
        """Estágio desconhecido devolve listas vazias, sem exceção."""
        req = get_required_fields("stage9")
        assert req.is_empty
        assert req.to_dict() == {"required": [], "required_dates": [], "optional": []}


class TestFieldSpecs:
    """Typed field table."""

    def test_executed_field_is_declared(self):
        spec = DEFAULT_REGISTRY.get_field("stage1", "launchDate")
        assert spec.kind == FieldKind.DATE_WITH_EXECUTION
        assert spec.executed_field == "launchDateExecuted"

    def test_plain_field_has_no_executed_flag(self):
        spec = DEFAULT_REGISTRY.get_field("stage1", "productGroup")
        assert not spec.is_date
        assert spec.executed_field is None

    def test_labels(self):
        spec = DEFAULT_REGISTRY.get_field("stage1", "massProductionDate")
        assert spec.label("ko") == "양산예정일"
        assert spec.label("en") == "Mass production date"

    def test_stage_of(self):
        assert DEFAULT_REGISTRY.stage_of("techTransferDate") == "stage2"
        assert DEFAULT_REGISTRY.stage_of("nope") is None

    def test_registry_is_read_only(self):
        spec = DEFAULT_REGISTRY.get_field("stage1", "launchDate")
        with pytest.raises(Exception):
            spec.required = False
        with pytest.raises(TypeError):
            spec.labels["ko"] = "x"

    def test_blank_stage(self):
        blank = DEFAULT_REGISTRY.blank_stage("stage1")
        assert blank["launchDate"] == ""
        assert blank["launchDateExecuted"] is False
        assert blank["notes"] == ""


class TestCustomRegistry:
    """Validation of custom registries."""

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError):
            StageSchemaRegistry({"stage1": (plain_field("a", "a", "a"), plain_field("a", "a", "a"))})

    def test_undeclared_predecessor_rejected(self):
        with pytest.raises(ValueError):
            StageSchemaRegistry({"stage1": (date_field("end", "e", "e", predecessor="start"),)})

    def test_to_dict_lists_every_stage(self):
        data = DEFAULT_REGISTRY.to_dict()
        assert set(data) == {"stage1", "stage2", "stage3"}
        assert data["stage2"]["label"]["ko"] == "2단계 (생산준비)"
