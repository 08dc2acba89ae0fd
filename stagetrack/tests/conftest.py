"""
Fixtures comuns para todos os testes do StageTrack.
"""
from datetime import date

import pytest
from fastapi.testclient import TestClient

from stagetrack.engine_config import EngineSettings


ENV_VARS = (
    "STAGETRACK_LANGUAGE",
    "STAGETRACK_TIMEZONE",
    "STAGETRACK_IMMINENT_DAYS",
    "STAGETRACK_SOON_DAYS",
    "STAGETRACK_URGENT_DAYS",
    "STAGETRACK_REMINDER_DAYS",
    "STAGETRACK_SAVE_DEBOUNCE_MS",
    "STAGETRACK_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isola cada teste da configuração do ambiente."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    EngineSettings.reset()
    yield
    EngineSettings.reset()


@pytest.fixture(scope="function")
def test_client():
    """Cliente de teste FastAPI."""
    from stagetrack.api import app
    return TestClient(app)


@pytest.fixture
def reference_day():
    """Dia de referência fixo para cálculos de D-Day."""
    return date(2025, 6, 1)


@pytest.fixture
def scenario_project():
    """Projeto com stage1 parcialmente concluído (90%)."""
    return {
        "id": "PRJ-001",
        "name": "Water purifier",
        "modelName": "WP-200",
        "completed": False,
        "createdAt": "2025-01-01T09:00:00Z",
        "updatedAt": "2025-01-01T09:00:00Z",
        "stage1": {
            "productGroup": "Water purifier",
            "modelName": "WP-200",
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


@pytest.fixture
def empty_project():
    """Projeto sem dados em nenhum estágio."""
    return {
        "id": "PRJ-EMPTY",
        "name": "Empty",
        "stage1": {},
        "stage2": {},
        "stage3": {},
    }


@pytest.fixture
def complete_project():
    """Projeto com todos os campos obrigatórios preenchidos e executados."""
    return {
        "id": "PRJ-DONE",
        "name": "Air purifier",
        "modelName": "AP-10",
        "completed": True,
        "stage1": {
            "productGroup": "Air purifier",
            "manufacturer": "ACME",
            "productManager": "Lee",
            "launchDate": "2025-01-10",
            "launchDateExecuted": True,
            "massProductionDate": "2025-03-01",
            "massProductionDateExecuted": True,
        },
        "stage2": {
            "pilotProductionDate": "2025-01-20",
            "pilotProductionDateExecuted": True,
            "techTransferDate": "2025-01-25",
            "techTransferDateExecuted": True,
            "installationParty": "HQ",
            "serviceParty": "Branch",
            "trainingDate": "2025-02-01",
            "trainingDateExecuted": True,
        },
        "stage3": {
            "bomManager": "Park",
            "priceManager": "Choi",
            "partsReceiptManager": "Jung",
            "bomCompletionDate": "2025-02-01",
            "bomCompletionDateExecuted": True,
            "priceRegistrationDate": "2025-02-05",
            "priceRegistrationDateExecuted": True,
            "firstPartsOrderDate": "2025-02-10",
            "firstPartsOrderDateExecuted": True,
            "partsReceiptDate": "2025-02-20",
            "partsReceiptDateExecuted": True,
            "branchOrderGuideDate": "2025-02-25",
            "branchOrderGuideDateExecuted": True,
        },
    }


@pytest.fixture
def overdue_projects():
    """Dois projetos, cada um com uma data passada e não executada."""
    return [
        {
            "id": "PRJ-A",
            "name": "Alpha",
            "stage1": {"launchDate": "2025-03-01", "launchDateExecuted": False},
            "stage2": {},
            "stage3": {},
        },
        {
            "id": "PRJ-B",
            "name": "Beta",
            "stage1": {},
            "stage2": {"pilotProductionDate": "2025-02-01", "pilotProductionDateExecuted": False},
            "stage3": {},
        },
    ]
