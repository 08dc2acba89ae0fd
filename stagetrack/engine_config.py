"""
StageTrack - Engine Configuration
=================================

Configuração do motor de derivação (progresso, validação temporal, calendário).

Uso:
    from stagetrack.engine_config import EngineSettings

    config = EngineSettings.get_config()
    if d_day <= config.imminent_days:
        ...

Configuração via variáveis de ambiente:
    STAGETRACK_LANGUAGE=en
    STAGETRACK_TIMEZONE=Asia/Seoul
    STAGETRACK_IMMINENT_DAYS=7
    STAGETRACK_SOON_DAYS=30
    STAGETRACK_URGENT_DAYS=7
    STAGETRACK_REMINDER_DAYS=3
    STAGETRACK_SAVE_DEBOUNCE_MS=1000
    STAGETRACK_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class Language(str, Enum):
    """Idiomas suportados para labels, mensagens e exports."""
    KO = "ko"
    EN = "en"


# ═══════════════════════════════════════════════════════════════════════════════
# CONFIG
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class EngineConfig:
    """
    Configuração do motor.

    Horizon windows só afetam a sub-classificação de eventos 'upcoming'
    (imminent/soon/future) e os alvos de notificação; o bucket base
    (overdue/today/upcoming/completed) não depende deles.
    """
    language: Language = Language.KO
    timezone: str = "Asia/Seoul"

    # Sub-buckets de 'upcoming'
    imminent_days: int = 7
    soon_days: int = 30

    # Alvos de notificação
    urgent_days: int = 7
    reminder_days: int = 3

    # Debounce de gravação (propriedade do caller, não do motor)
    save_debounce_ms: int = 1000

    log_level: str = "INFO"

    @property
    def save_debounce_seconds(self) -> float:
        return self.save_debounce_ms / 1000.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "language": self.language.value,
            "timezone": self.timezone,
            "imminent_days": self.imminent_days,
            "soon_days": self.soon_days,
            "urgent_days": self.urgent_days,
            "reminder_days": self.reminder_days,
            "save_debounce_ms": self.save_debounce_ms,
            "log_level": self.log_level,
        }


class EngineSettings:
    """
    Singleton para a configuração do motor.

    Carrega de variáveis de ambiente ou usa defaults.

    Uso:
        config = EngineSettings.get_config()
        EngineSettings.reset()  # recarregar após alterar o ambiente
    """

    _instance: Optional[EngineConfig] = None

    @classmethod
    def _load_from_env(cls) -> EngineConfig:
        """Carrega configuração de variáveis de ambiente."""
        config = EngineConfig()

        language = os.environ.get("STAGETRACK_LANGUAGE")
        if language:
            try:
                config.language = Language(language.lower())
                logger.info(f"Engine language = {config.language.value}")
            except ValueError:
                logger.warning(f"Invalid value for STAGETRACK_LANGUAGE: {language}")

        timezone = os.environ.get("STAGETRACK_TIMEZONE")
        if timezone:
            config.timezone = timezone

        int_mapping = {
            "STAGETRACK_IMMINENT_DAYS": "imminent_days",
            "STAGETRACK_SOON_DAYS": "soon_days",
            "STAGETRACK_URGENT_DAYS": "urgent_days",
            "STAGETRACK_REMINDER_DAYS": "reminder_days",
            "STAGETRACK_SAVE_DEBOUNCE_MS": "save_debounce_ms",
        }

        for env_var, attr_name in int_mapping.items():
            value = os.environ.get(env_var)
            if not value:
                continue
            try:
                parsed = int(value)
            except ValueError:
                logger.warning(f"Invalid value for {env_var}: {value}")
                continue
            if parsed < 0:
                logger.warning(f"Negative value for {env_var} ignored: {value}")
                continue
            setattr(config, attr_name, parsed)

        if config.soon_days < config.imminent_days:
            logger.warning(
                f"STAGETRACK_SOON_DAYS ({config.soon_days}) < STAGETRACK_IMMINENT_DAYS "
                f"({config.imminent_days}); using imminent window for both"
            )
            config.soon_days = config.imminent_days

        log_level = os.environ.get("STAGETRACK_LOG_LEVEL")
        if log_level:
            if log_level.upper() in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
                config.log_level = log_level.upper()
            else:
                logger.warning(f"Invalid value for STAGETRACK_LOG_LEVEL: {log_level}")

        return config

    @classmethod
    def get_config(cls) -> EngineConfig:
        """Obtém configuração atual."""
        if cls._instance is None:
            cls._instance = cls._load_from_env()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset para recarregar config."""
        cls._instance = None

    @classmethod
    def get_language(cls) -> Language:
        return cls.get_config().language


def resolve_language(language: Optional[str]) -> Language:
    """Normaliza um código de idioma, caindo para o idioma configurado."""
    if language is None:
        return EngineSettings.get_language()
    if isinstance(language, Language):
        return language
    try:
        return Language(str(language).lower())
    except ValueError:
        logger.warning(f"Unsupported language '{language}', using configured default")
        return EngineSettings.get_language()


def configure_logging(level: Optional[str] = None) -> None:
    """Aplica o nível de log configurado ao logger raiz do pacote."""
    level_name = level or EngineSettings.get_config().log_level
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("stagetrack").setLevel(getattr(logging, level_name, logging.INFO))
