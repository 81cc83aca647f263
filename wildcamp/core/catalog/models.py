"""카탈로그 도메인 모델 (DB 무관, 불변)"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .enums import (
    EquipmentSlot,
    ObjectiveType,
    Rarity,
    ResourceCategory,
    ToolType,
)


@dataclass(frozen=True)
class Resource:
    """자원 정의. resources.json에서 로드."""

    resource_id: str  # "res_veado"
    name: str  # "Veado"
    category: ResourceCategory
    weight: float
    value: int
    rarity: Rarity = Rarity.COMMON
    emoji: str = ""

    # None이면 floor(value / 2) 사용
    experience_value: Optional[int] = None

    # 채집 조건
    required_tool: ToolType = ToolType.NONE
    distance_from_camp: float = 0  # 0 = 직접 채집 불가 (가공품)
    collection_time_minutes: int = 0

    # 소비
    hunger_restore: float = 0
    thirst_restore: float = 0

    @property
    def is_consumable(self) -> bool:
        return self.hunger_restore > 0 or self.thirst_restore > 0

    @property
    def experience_per_unit(self) -> int:
        if self.experience_value:
            return self.experience_value
        return self.value // 2


@dataclass(frozen=True)
class Equipment:
    """장비 정의"""

    equipment_id: str
    name: str
    slot: EquipmentSlot
    tool_type: ToolType = ToolType.NONE
    weight: float = 0
    emoji: str = ""
    bonus: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Recipe:
    """제작법. ingredients/outputs: {item_id: quantity}"""

    recipe_id: str
    name: str
    required_level: int
    ingredients: dict[str, int]
    outputs: dict[str, int]
    emoji: str = ""


@dataclass(frozen=True)
class Biome:
    """탐험 지역"""

    biome_id: str
    name: str
    required_level: int
    resource_ids: tuple[str, ...]
    emoji: str = ""
    description: str = ""


@dataclass(frozen=True)
class QuestObjective:
    """퀘스트 목표 단위.

    target: collect → resource_id, craft → item_id, kill → creature_id,
            expedition → biome_id, level → None
    quantity: level 목표는 요구 레벨
    """

    objective_type: ObjectiveType
    quantity: int = 1
    target: Optional[str] = None
    description: str = ""

    @property
    def key(self) -> str:
        """진행도 맵 키"""
        if self.objective_type == ObjectiveType.LEVEL:
            return ObjectiveType.LEVEL.value
        return f"{self.objective_type.value}_{self.target}"


@dataclass(frozen=True)
class QuestRewards:
    experience: int = 0
    coins: int = 0
    items: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class Quest:
    """퀘스트 정의"""

    quest_id: str
    name: str
    required_level: int
    objectives: tuple[QuestObjective, ...]
    rewards: QuestRewards = field(default_factory=QuestRewards)
    description: str = ""
    category: str = ""
    emoji: str = ""
