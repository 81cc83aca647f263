"""채집 도구 요구 조건"""

from __future__ import annotations

from wildcamp.core.catalog.enums import EquipmentSlot, ToolType
from wildcamp.core.catalog.models import Resource
from wildcamp.core.catalog.registry import CatalogRegistry

from .models import PlayerState


def _tool_type_in(
    player: PlayerState, slot: EquipmentSlot, catalog: CatalogRegistry
) -> ToolType | None:
    equipment_id = player.equipped_in(slot)
    if equipment_id is None:
        return None
    equipment = catalog.get_equipment(equipment_id)
    return equipment.tool_type if equipment is not None else None


def has_required_tool(
    player: PlayerState, resource: Resource, catalog: CatalogRegistry
) -> bool:
    """
    none             → 항상 True
    weapon_and_knife → 무기 슬롯에 칼이 아닌 무기 + 도구/무기 슬롯에 칼
    그 외            → 도구 또는 무기 슬롯의 tool_type 일치
    """
    required = resource.required_tool
    if required == ToolType.NONE:
        return True

    tool = _tool_type_in(player, EquipmentSlot.TOOL, catalog)
    weapon_id = player.equipped_in(EquipmentSlot.WEAPON)
    weapon = _tool_type_in(player, EquipmentSlot.WEAPON, catalog)

    if required == ToolType.WEAPON_AND_KNIFE:
        has_weapon = weapon_id is not None and weapon != ToolType.KNIFE
        has_knife = ToolType.KNIFE in (tool, weapon)
        return has_weapon and has_knife

    return required in (tool, weapon)
