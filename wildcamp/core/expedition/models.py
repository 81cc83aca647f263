"""원정 도메인 모델 (DB 무관)"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class ExpeditionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_finished(self) -> bool:
        return self != ExpeditionStatus.ACTIVE


class ReturnReason(str, Enum):
    HUNGER_LOW = "hunger_low"
    THIRST_LOW = "thirst_low"
    INVENTORY_FULL = "inventory_full"


@dataclass
class Expedition:
    """원정 1회.

    collected_resources: 틱마다 누적된 원시 채집물 (완료 후에는 가공 결과)
    granted_resources: 이미 플레이어에게 지급된 수량 (완료 시 차감 기준)
    """

    expedition_id: str
    player_id: str
    biome_id: str
    selected_resources: list[str]
    status: ExpeditionStatus = ExpeditionStatus.ACTIVE
    collected_resources: dict[str, int] = field(default_factory=dict)
    granted_resources: dict[str, int] = field(default_factory=dict)
    current_distance: float = 0.0
    return_reason: Optional[ReturnReason] = None
    experience_gained: int = 0
    coins_gained: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == ExpeditionStatus.ACTIVE


@dataclass
class TickResult:
    """simulate_tick 결과"""

    expedition: Expedition
    resource_collected: Optional[str] = None
    should_return: bool = False
    return_reason: Optional[ReturnReason] = None
    collection_time: int = 0
