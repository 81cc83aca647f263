"""플레이어 도메인 모델 (DB 무관)"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from wildcamp.core.catalog.enums import EquipmentSlot

EQUIPMENT_SLOTS: tuple[str, ...] = tuple(slot.value for slot in EquipmentSlot)


class ItemLocation(str, Enum):
    """아이템 보관 위치. 제작품 목적지 설정에도 사용"""

    INVENTORY = "inventory"
    STORAGE = "storage"


@dataclass(frozen=True)
class ItemStack:
    """인벤토리/창고 한 행"""

    resource_id: str
    quantity: int
    item_type: str = "resource"


@dataclass
class PlayerSettings:
    auto_storage: bool = False
    auto_complete_quests: bool = True
    crafted_items_destination: ItemLocation = ItemLocation.STORAGE
    auto_consume: bool = False

    def to_dict(self) -> dict:
        return {
            "auto_storage": self.auto_storage,
            "auto_complete_quests": self.auto_complete_quests,
            "crafted_items_destination": self.crafted_items_destination.value,
            "auto_consume": self.auto_consume,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> PlayerSettings:
        data = data or {}
        return cls(
            auto_storage=bool(data.get("auto_storage", False)),
            auto_complete_quests=bool(data.get("auto_complete_quests", True)),
            crafted_items_destination=ItemLocation(
                data.get("crafted_items_destination", ItemLocation.STORAGE.value)
            ),
            auto_consume=bool(data.get("auto_consume", False)),
        )


def _empty_slots() -> dict[str, Optional[str]]:
    return {slot: None for slot in EQUIPMENT_SLOTS}


@dataclass
class PlayerState:
    """플레이어 장부 스냅샷.

    hunger/thirst는 [0, max] 범위 float.
    inventory_weight는 인벤토리 행에서 재계산된 값만 담는다 (증분 갱신 금지).
    """

    player_id: str
    username: str
    hunger: float = 100.0
    max_hunger: float = 100.0
    thirst: float = 100.0
    max_thirst: float = 100.0
    level: int = 1
    experience: int = 0
    coins: int = 0
    inventory_weight: float = 0.0
    max_inventory_weight: float = 50.0
    equipped: dict[str, Optional[str]] = field(default_factory=_empty_slots)
    settings: PlayerSettings = field(default_factory=PlayerSettings)
    # 자동 소비 슬롯 (resource_id)
    equipped_food: Optional[str] = None
    equipped_drink: Optional[str] = None

    def equipped_in(self, slot: EquipmentSlot | str) -> Optional[str]:
        key = slot.value if isinstance(slot, EquipmentSlot) else slot
        return self.equipped.get(key)
