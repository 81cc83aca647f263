"""퀘스트 트래커 Core 패키지"""

from wildcamp.core.quest.models import ObjectiveProgress, PlayerQuest, QuestStatus
from wildcamp.core.quest.progress import (
    EVENT_OBJECTIVES,
    apply_progress,
    evaluate_objectives,
    initial_progress,
    objective_match_from_event,
)

__all__ = [
    "QuestStatus",
    "ObjectiveProgress",
    "PlayerQuest",
    "EVENT_OBJECTIVES",
    "initial_progress",
    "apply_progress",
    "evaluate_objectives",
    "objective_match_from_event",
]
