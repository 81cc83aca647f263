"""카탈로그 저장소 - JSON 로드 + O(1) 조회

서버 시작 시 한 번 로드하고 이후 읽기 전용.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from .enums import (
    EquipmentSlot,
    ItemType,
    ObjectiveType,
    Rarity,
    ResourceCategory,
    ToolType,
)
from .models import (
    Biome,
    Equipment,
    Quest,
    QuestObjective,
    QuestRewards,
    Recipe,
    Resource,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RESOURCES_FILE = "resources.json"
EQUIPMENT_FILE = "equipment.json"
RECIPES_FILE = "recipes.json"
BIOMES_FILE = "biomes.json"
QUESTS_FILE = "quests.json"
ANIMAL_YIELDS_FILE = "animal_yields.json"


def _parse_resource(raw: dict[str, Any]) -> Resource:
    exp = raw.get("experience_value")
    return Resource(
        resource_id=raw["resource_id"],
        name=raw["name"],
        category=ResourceCategory(raw["category"]),
        weight=float(raw["weight"]),
        value=int(raw["value"]),
        rarity=Rarity(raw.get("rarity", "common")),
        emoji=raw.get("emoji", ""),
        experience_value=int(exp) if exp is not None else None,
        required_tool=ToolType(raw.get("required_tool", "none")),
        distance_from_camp=float(raw.get("distance_from_camp", 0)),
        collection_time_minutes=int(raw.get("collection_time_minutes", 0)),
        hunger_restore=float(raw.get("hunger_restore", 0)),
        thirst_restore=float(raw.get("thirst_restore", 0)),
    )


def _parse_equipment(raw: dict[str, Any]) -> Equipment:
    return Equipment(
        equipment_id=raw["equipment_id"],
        name=raw["name"],
        slot=EquipmentSlot(raw["slot"]),
        tool_type=ToolType(raw.get("tool_type", "none")),
        weight=float(raw.get("weight", 0)),
        emoji=raw.get("emoji", ""),
        bonus=dict(raw.get("bonus", {})),
    )


def _parse_recipe(raw: dict[str, Any]) -> Recipe:
    return Recipe(
        recipe_id=raw["recipe_id"],
        name=raw["name"],
        required_level=int(raw.get("required_level", 1)),
        ingredients={k: int(v) for k, v in raw["ingredients"].items()},
        outputs={k: int(v) for k, v in raw["outputs"].items()},
        emoji=raw.get("emoji", ""),
    )


def _parse_biome(raw: dict[str, Any]) -> Biome:
    return Biome(
        biome_id=raw["biome_id"],
        name=raw["name"],
        required_level=int(raw.get("required_level", 0)),
        resource_ids=tuple(raw.get("resource_ids", [])),
        emoji=raw.get("emoji", ""),
        description=raw.get("description", ""),
    )


def _parse_quest(raw: dict[str, Any]) -> Quest:
    objectives = tuple(
        QuestObjective(
            objective_type=ObjectiveType(obj["type"]),
            quantity=int(obj.get("quantity", 1)),
            target=obj.get("target"),
            description=obj.get("description", ""),
        )
        for obj in raw["objectives"]
    )
    rewards_raw = raw.get("rewards", {})
    rewards = QuestRewards(
        experience=int(rewards_raw.get("experience", 0)),
        coins=int(rewards_raw.get("coins", 0)),
        items={k: int(v) for k, v in rewards_raw.get("items", {}).items()},
    )
    return Quest(
        quest_id=raw["quest_id"],
        name=raw["name"],
        required_level=int(raw.get("required_level", 1)),
        objectives=objectives,
        rewards=rewards,
        description=raw.get("description", ""),
        category=raw.get("category", ""),
        emoji=raw.get("emoji", ""),
    )


class CatalogRegistry:
    """
    정적 게임 데이터 저장소.
    자원 / 장비 / 제작법 / 바이옴 / 퀘스트 / 동물 가공표.
    """

    def __init__(self) -> None:
        self._resources: dict[str, Resource] = {}
        self._equipment: dict[str, Equipment] = {}
        self._recipes: dict[str, Recipe] = {}
        self._biomes: dict[str, Biome] = {}
        self._quests: dict[str, Quest] = {}
        self._animal_yields: dict[str, dict[str, int]] = {}

    # === 로드 ===

    def load(self, data_dir: str | Path) -> int:
        """data_dir의 카탈로그 JSON 전체 로드. 반환: 로드된 정의 수."""
        data_dir = Path(data_dir)
        count = 0
        count += self._load_list(
            data_dir / RESOURCES_FILE, _parse_resource, self._resources, "resource_id"
        )
        count += self._load_list(
            data_dir / EQUIPMENT_FILE, _parse_equipment, self._equipment, "equipment_id"
        )
        count += self._load_list(
            data_dir / RECIPES_FILE, _parse_recipe, self._recipes, "recipe_id"
        )
        count += self._load_list(
            data_dir / BIOMES_FILE, _parse_biome, self._biomes, "biome_id"
        )
        count += self._load_list(
            data_dir / QUESTS_FILE, _parse_quest, self._quests, "quest_id"
        )
        count += self.load_animal_yields(data_dir / ANIMAL_YIELDS_FILE)
        self._warn_dangling_references()
        logger.info("Catalog loaded: %d definitions from %s", count, data_dir)
        return count

    def _load_list(
        self,
        path: Path,
        parser: Callable[[dict[str, Any]], T],
        target: dict[str, T],
        id_field: str,
    ) -> int:
        with path.open("r", encoding="utf-8") as f:
            raw_list: list[dict] = json.load(f)

        count = 0
        for raw in raw_list:
            try:
                item = parser(raw)
            except (KeyError, ValueError) as e:
                logger.warning(
                    "Failed to load %s entry %s: %s", path.name, raw.get(id_field, "?"), e
                )
                continue
            target[getattr(item, id_field)] = item
            count += 1
        return count

    def load_animal_yields(self, path: str | Path) -> int:
        """animal_yields.json: {animal_resource_id: {part_resource_id: qty}}"""
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            raw: dict[str, dict[str, int]] = json.load(f)
        self._animal_yields = {
            animal: {part: int(qty) for part, qty in parts.items()}
            for animal, parts in raw.items()
        }
        return len(self._animal_yields)

    def _warn_dangling_references(self) -> None:
        for biome in self._biomes.values():
            for resource_id in biome.resource_ids:
                if resource_id not in self._resources:
                    logger.warning(
                        "Biome %s references unknown resource %s",
                        biome.biome_id,
                        resource_id,
                    )
        for animal, parts in self._animal_yields.items():
            for part_id in (animal, *parts):
                if part_id not in self._resources:
                    logger.warning("Animal yield references unknown resource %s", part_id)

    # === 등록 (테스트/확장용) ===

    def register_resource(self, resource: Resource) -> None:
        if resource.resource_id in self._resources:
            logger.warning("Overwriting existing resource: %s", resource.resource_id)
        self._resources[resource.resource_id] = resource

    def register_biome(self, biome: Biome) -> None:
        self._biomes[biome.biome_id] = biome

    def register_quest(self, quest: Quest) -> None:
        self._quests[quest.quest_id] = quest

    # === 조회 ===

    def get_resource(self, resource_id: str) -> Optional[Resource]:
        return self._resources.get(resource_id)

    def get_equipment(self, equipment_id: str) -> Optional[Equipment]:
        return self._equipment.get(equipment_id)

    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        return self._recipes.get(recipe_id)

    def get_biome(self, biome_id: str) -> Optional[Biome]:
        return self._biomes.get(biome_id)

    def get_quest(self, quest_id: str) -> Optional[Quest]:
        return self._quests.get(quest_id)

    def all_resources(self) -> list[Resource]:
        return list(self._resources.values())

    def all_equipment(self) -> list[Equipment]:
        return list(self._equipment.values())

    def all_recipes(self) -> list[Recipe]:
        return list(self._recipes.values())

    def all_biomes(self) -> list[Biome]:
        return list(self._biomes.values())

    def all_quests(self) -> list[Quest]:
        return list(self._quests.values())

    def resources_for_biome(self, biome_id: str) -> list[Resource]:
        """바이옴에서 얻을 수 있는 자원. 미등록 id는 건너뛴다."""
        biome = self._biomes.get(biome_id)
        if biome is None:
            return []
        return [
            self._resources[rid] for rid in biome.resource_ids if rid in self._resources
        ]

    def animal_yield(self, resource_id: str) -> Optional[dict[str, int]]:
        """동물 1마리당 부위 산출표. 동물이 아니면 None."""
        parts = self._animal_yields.get(resource_id)
        return dict(parts) if parts is not None else None

    def __len__(self) -> int:
        return (
            len(self._resources)
            + len(self._equipment)
            + len(self._recipes)
            + len(self._biomes)
            + len(self._quests)
        )

    def is_known_item(self, item_id: str) -> bool:
        return item_id in self._resources or item_id in self._equipment

    def item_type_of(self, item_id: str) -> Optional[ItemType]:
        if item_id in self._equipment:
            return ItemType.EQUIPMENT
        if item_id in self._resources:
            return ItemType.RESOURCE
        return None

    def item_weight(self, item_id: str) -> float:
        """인벤토리 무게 계산용. 미등록 id는 0."""
        resource = self._resources.get(item_id)
        if resource is not None:
            return resource.weight
        equipment = self._equipment.get(item_id)
        if equipment is not None:
            return equipment.weight
        return 0.0
