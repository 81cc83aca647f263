"""Core 객체 → 응답 스키마 변환"""

from typing import Any

from wildcamp.api.schemas import (
    BiomeInfo,
    BiomeResourceInfo,
    EquipmentInfo,
    ExpeditionResponse,
    ItemStackInfo,
    PlayerQuestInfo,
    PlayerResponse,
    PlayerSettingsInfo,
    QuestInfo,
    QuestObjectiveInfo,
    RecipeInfo,
    ResourceInfo,
)
from wildcamp.core.catalog.models import Biome, Equipment, Quest, Recipe, Resource
from wildcamp.core.expedition.models import Expedition
from wildcamp.core.player.models import ItemStack, PlayerState


def build_player(player: PlayerState) -> PlayerResponse:
    """PlayerState를 PlayerResponse로 변환"""
    return PlayerResponse(
        player_id=player.player_id,
        username=player.username,
        hunger=player.hunger,
        max_hunger=player.max_hunger,
        thirst=player.thirst,
        max_thirst=player.max_thirst,
        level=player.level,
        experience=player.experience,
        coins=player.coins,
        inventory_weight=player.inventory_weight,
        max_inventory_weight=player.max_inventory_weight,
        equipped=dict(player.equipped),
        equipped_food=player.equipped_food,
        equipped_drink=player.equipped_drink,
        settings=PlayerSettingsInfo(**player.settings.to_dict()),
    )


def build_items(stacks: list[ItemStack]) -> list[ItemStackInfo]:
    return [
        ItemStackInfo(
            resource_id=stack.resource_id,
            quantity=stack.quantity,
            item_type=stack.item_type,
        )
        for stack in stacks
    ]


def build_expedition(expedition: Expedition) -> ExpeditionResponse:
    """Expedition을 ExpeditionResponse로 변환"""
    return ExpeditionResponse(
        expedition_id=expedition.expedition_id,
        player_id=expedition.player_id,
        biome_id=expedition.biome_id,
        selected_resources=list(expedition.selected_resources),
        status=expedition.status,
        collected_resources=dict(expedition.collected_resources),
        current_distance=expedition.current_distance,
        return_reason=expedition.return_reason,
        experience_gained=expedition.experience_gained,
        coins_gained=expedition.coins_gained,
        start_time=expedition.start_time,
        end_time=expedition.end_time,
    )


def build_resource(resource: Resource) -> ResourceInfo:
    return ResourceInfo(
        resource_id=resource.resource_id,
        name=resource.name,
        category=resource.category.value,
        weight=resource.weight,
        value=resource.value,
        rarity=resource.rarity.value,
        emoji=resource.emoji,
        experience=resource.experience_per_unit,
        required_tool=resource.required_tool.value,
        distance_from_camp=resource.distance_from_camp,
        collection_time_minutes=resource.collection_time_minutes,
        hunger_restore=resource.hunger_restore,
        thirst_restore=resource.thirst_restore,
    )


def build_equipment(equipment: Equipment) -> EquipmentInfo:
    return EquipmentInfo(
        equipment_id=equipment.equipment_id,
        name=equipment.name,
        slot=equipment.slot.value,
        tool_type=equipment.tool_type.value,
        weight=equipment.weight,
        emoji=equipment.emoji,
        bonus=dict(equipment.bonus),
    )


def build_recipe(recipe: Recipe) -> RecipeInfo:
    return RecipeInfo(
        recipe_id=recipe.recipe_id,
        name=recipe.name,
        required_level=recipe.required_level,
        ingredients=dict(recipe.ingredients),
        outputs=dict(recipe.outputs),
        emoji=recipe.emoji,
    )


def build_biome(biome: Biome) -> BiomeInfo:
    return BiomeInfo(
        biome_id=biome.biome_id,
        name=biome.name,
        required_level=biome.required_level,
        resource_ids=list(biome.resource_ids),
        emoji=biome.emoji,
        description=biome.description,
    )


def build_biome_resource(entry: dict[str, Any]) -> BiomeResourceInfo:
    return BiomeResourceInfo(
        resource=build_resource(entry["resource"]),
        distance_from_camp=entry["distance_from_camp"],
        required_tool=entry["required_tool"],
        collectable=entry["collectable"],
    )


def build_quest(quest: Quest) -> QuestInfo:
    """Quest 정의를 QuestInfo로 변환"""
    return QuestInfo(
        quest_id=quest.quest_id,
        name=quest.name,
        description=quest.description,
        category=quest.category,
        emoji=quest.emoji,
        required_level=quest.required_level,
        objectives=[
            QuestObjectiveInfo(
                type=objective.objective_type.value,
                target=objective.target,
                quantity=objective.quantity,
                description=objective.description,
            )
            for objective in quest.objectives
        ],
        rewards={
            "experience": quest.rewards.experience,
            "coins": quest.rewards.coins,
            "items": dict(quest.rewards.items),
        },
    )


def build_player_quest(entry: dict[str, Any]) -> PlayerQuestInfo:
    return PlayerQuestInfo(
        quest=build_quest(entry["quest"]),
        status=entry["status"],
        progress=entry["progress"],
        started_at=entry["started_at"],
        completed_at=entry["completed_at"],
    )
