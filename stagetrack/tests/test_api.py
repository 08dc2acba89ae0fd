"""
═══════════════════════════════════════════════════════════════════════════════
                    STAGETRACK — HTTP API Tests
═══════════════════════════════════════════════════════════════════════════════

Run with: python -m pytest stagetrack/tests/test_api.py -v
"""


class TestHealthAndSchema:
    """Endpoints de leitura."""

    def test_health(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_schema(self, test_client):
        response = test_client.get("/tracking/schema")
        assert response.status_code == 200
        assert set(response.json()) >= {"stage1", "stage2", "stage3"}

    def test_openapi_descriptions(self, test_client):
        """Descrições dos endpoints vêm das docstrings em português."""
        import stagetrack.api

        assert "STAGETRACK API" in stagetrack.api.__doc__
        paths = test_client.get("/openapi.json").json()["paths"]
        assert paths["/tracking/progress"]["post"]["description"].startswith("Progresso por estágio")
        assert paths["/milestones/events"]["post"]["description"].startswith("Eventos ordenados")

    def test_stage_schema(self, test_client):
        assert test_client.get("/tracking/schema/stage2").status_code == 200
        response = test_client.get("/tracking/schema/stage9")
        assert response.status_code == 404


class TestTrackingEndpoints:
    """Progresso, validação e edição."""

    def test_progress(self, test_client, scenario_project):
        response = test_client.post("/tracking/progress", json={"project": scenario_project})
        assert response.status_code == 200
        data = response.json()
        assert data["project_id"] == "PRJ-001"
        assert data["progress"]["stage1"] == 90
        assert data["progress"]["overall"] == 30
        assert set(data["stages"]) == {"stage1", "stage2", "stage3"}

    def test_portfolio(self, test_client, scenario_project, complete_project):
        response = test_client.post(
            "/tracking/portfolio", json={"projects": [scenario_project, complete_project]},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["summary"]["total_projects"] == 2
        assert data["summary"]["fully_complete"] == 1
        assert len(data["projects"]) == 2

    def test_validate_after_mass_production(self, test_client, scenario_project):
        response = test_client.post("/tracking/validate", json={
            "project": scenario_project,
            "stage": "stage3",
            "field": "partsReceiptDate",
            "value": "2025-06-15",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is False
        assert data["code"] == "after_mass_production"
        assert data["related_field"] == "massProductionDate"

    def test_validate_ok(self, test_client, scenario_project):
        response = test_client.post("/tracking/validate", json={
            "project": scenario_project,
            "stage": "stage3",
            "field": "partsReceiptDate",
            "value": "2025-05-15",
        })
        assert response.json() == {
            "valid": True, "message": None, "code": None, "related_field": None,
        }

    def test_validate_project(self, test_client, complete_project):
        response = test_client.post("/tracking/validate/project", json={"project": complete_project})
        assert response.json() == {"valid": True, "issues": []}

    def test_edit(self, test_client, scenario_project):
        response = test_client.post("/tracking/edit", json={
            "project": scenario_project,
            "stage": "stage1",
            "field": "massProductionDateExecuted",
            "value": True,
        })
        assert response.status_code == 200
        data = response.json()
        assert data["applied"] is True
        assert data["stage_progress"] == 100
        assert data["progress"]["stage1"] == 100
        assert data["project"]["stage1"]["massProductionDateExecuted"] is True

    def test_missing_body_field(self, test_client):
        response = test_client.post("/tracking/edit", json={"stage": "stage1"})
        assert response.status_code == 422


class TestMilestoneEndpoints:
    """Eventos, prazos, notificações e exportação."""

    def test_events(self, test_client, scenario_project, overdue_projects):
        response = test_client.post("/milestones/events", json={
            "projects": [scenario_project, *overdue_projects],
            "today": "2025-06-01",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 4
        assert data["events"][0]["id"] == "PRJ-B_pilotProductionDate"
        assert "googleUrl" in data["events"][0]
        assert data["stats"]["overdue"] == 2

    def test_events_month_view_with_filters(self, test_client, scenario_project, overdue_projects):
        response = test_client.post("/milestones/events", json={
            "projects": [scenario_project, *overdue_projects],
            "today": "2025-06-01",
            "view": "month",
            "anchor": "2025-03-10",
            "filters": {"status": "overdue"},
        })
        data = response.json()
        assert [e["id"] for e in data["events"]] == ["PRJ-A_launchDate"]

    def test_deadlines(self, test_client, scenario_project):
        response = test_client.post("/milestones/deadlines", json={
            "projects": [scenario_project],
            "today": "2025-06-01",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["today"] == "2025-06-01"
        assert [e["bucket"] for e in data["events"]] == ["completed", "today"]
        assert data["statistics"]["today"] == 1
        assert data["statistics"]["completed"] == 1

    def test_notifications(self, test_client, scenario_project, overdue_projects):
        response = test_client.post("/milestones/notifications", json={
            "projects": [scenario_project, *overdue_projects],
            "today": "2025-06-01",
            "include_overdue": False,
        })
        data = response.json()
        assert data["total"] == 1
        assert data["notifications"][0]["notificationType"] == "today"
        assert data["notifications"][0]["urgency"] == "high"

    def test_export_ical(self, test_client, scenario_project):
        response = test_client.post("/milestones/export/ical", json={
            "projects": [scenario_project],
            "today": "2025-06-01",
        })
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/calendar")
        assert "stagetrack_2025-06-01.ics" in response.headers["content-disposition"]
        assert response.text.startswith("BEGIN:VCALENDAR\r\n")

    def test_export_csv(self, test_client, scenario_project):
        response = test_client.post("/milestones/export/csv", json={
            "projects": [scenario_project],
            "today": "2025-06-01",
            "language": "en",
        })
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.content.startswith(b"\xef\xbb\xbf")
        assert '"Project","Model"' in response.content.decode("utf-8-sig")

    def test_export_unknown_format(self, test_client, scenario_project):
        response = test_client.post("/milestones/export/pdf", json={"projects": [scenario_project]})
        assert response.status_code == 400
