"""
════════════════════════════════════════════════════════════════════════════════════════════════════
STAGETRACK API - Aplicação FastAPI
════════════════════════════════════════════════════════════════════════════════════════════════════

Monta os routers stateless do motor:
- /tracking    schema dos estágios, progresso, validação e edição de campos
- /milestones  eventos de calendário, prazos, notificações e exportação
- /health      estado do serviço

Arranque: `stagetrack-server` (ver run_server.py) ou
    uvicorn stagetrack.api:app --reload
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .engine_config import EngineSettings, configure_logging
from .milestones.api import router as milestones_router
from .models_common import HealthResponse
from .project_tracking.api import router as tracking_router

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="StageTrack – Project Stage Tracking", version=__version__)
app.include_router(tracking_router)
app.include_router(milestones_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info(f"StageTrack API ready (config: {EngineSettings.get_config().to_dict()})")


# -------------------------------
# Health
# -------------------------------

@app.get("/health")
def health() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)
