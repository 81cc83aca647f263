"""카탈로그 열거형

자원 분류와 도구 요구 조건은 데이터 작성 시점에 명시한다 (이름 추론 금지).
"""

from enum import Enum


class ResourceCategory(str, Enum):
    BASIC = "basic"
    PLANT = "plant"
    ANIMAL = "animal"
    FISH = "fish"
    MATERIAL = "material"  # 동물 가공품 / 제작 재료 (직접 채집 불가)
    FOOD = "food"
    DRINK = "drink"

    @property
    def is_game(self) -> bool:
        """도축/손질 대상 여부"""
        return self in (ResourceCategory.ANIMAL, ResourceCategory.FISH)


class ToolType(str, Enum):
    NONE = "none"
    AXE = "axe"
    PICKAXE = "pickaxe"
    SHOVEL = "shovel"
    KNIFE = "knife"
    WEAPON_AND_KNIFE = "weapon_and_knife"
    FISHING_ROD = "fishing_rod"
    BUCKET = "bucket"


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    LEGENDARY = "legendary"


class EquipmentSlot(str, Enum):
    HELMET = "helmet"
    CHESTPLATE = "chestplate"
    LEGGINGS = "leggings"
    BOOTS = "boots"
    WEAPON = "weapon"
    TOOL = "tool"


class ObjectiveType(str, Enum):
    COLLECT = "collect"
    CRAFT = "craft"
    KILL = "kill"
    LEVEL = "level"
    EXPEDITION = "expedition"


class ItemType(str, Enum):
    RESOURCE = "resource"
    EQUIPMENT = "equipment"
