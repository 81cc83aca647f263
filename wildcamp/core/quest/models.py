"""플레이어 퀘스트 상태 모델 (DB 무관)"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class QuestStatus(str, Enum):
    """available → active → completed | cancelled
    completed → active 는 reset_quest 전용
    """

    AVAILABLE = "available"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class ObjectiveProgress:
    current: int
    required: int
    completed: bool = False

    def to_dict(self) -> dict:
        return {
            "current": self.current,
            "required": self.required,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ObjectiveProgress:
        return cls(
            current=int(data.get("current", 0)),
            required=int(data.get("required", 1)),
            completed=bool(data.get("completed", False)),
        )


@dataclass
class PlayerQuest:
    id: str
    player_id: str
    quest_id: str
    status: QuestStatus = QuestStatus.AVAILABLE
    progress: dict[str, ObjectiveProgress] = field(default_factory=dict)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == QuestStatus.ACTIVE

    def progress_dict(self) -> dict[str, dict]:
        return {key: p.to_dict() for key, p in self.progress.items()}
