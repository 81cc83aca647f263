"""원정 엔진 Core 패키지"""

from wildcamp.core.expedition.models import (
    Expedition,
    ExpeditionStatus,
    ReturnReason,
    TickResult,
)
from wildcamp.core.expedition.processing import process_animals, reward_delta
from wildcamp.core.expedition.rules import ExpeditionRules

__all__ = [
    "Expedition",
    "ExpeditionStatus",
    "ReturnReason",
    "TickResult",
    "ExpeditionRules",
    "process_animals",
    "reward_delta",
]
