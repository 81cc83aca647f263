"""카탈로그 Core 패키지 (정적 게임 데이터)"""

from wildcamp.core.catalog.enums import (
    EquipmentSlot,
    ItemType,
    ObjectiveType,
    Rarity,
    ResourceCategory,
    ToolType,
)
from wildcamp.core.catalog.models import (
    Biome,
    Equipment,
    Quest,
    QuestObjective,
    QuestRewards,
    Recipe,
    Resource,
)
from wildcamp.core.catalog.registry import CatalogRegistry

__all__ = [
    # enums
    "ResourceCategory",
    "ToolType",
    "Rarity",
    "EquipmentSlot",
    "ObjectiveType",
    "ItemType",
    # models
    "Resource",
    "Equipment",
    "Recipe",
    "Biome",
    "QuestObjective",
    "QuestRewards",
    "Quest",
    # registry
    "CatalogRegistry",
]
