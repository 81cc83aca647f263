"""제작 - 재료 계산과 인출 계획 (DB 무관)"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from wildcamp.core.catalog.models import Recipe
from wildcamp.core.errors import (
    InsufficientResourcesError,
    InvalidOperationError,
    ValidationError,
)


@dataclass
class WithdrawalPlan:
    """재료 인출 계획. 창고 우선, 부족분은 인벤토리."""

    from_storage: dict[str, int] = field(default_factory=dict)
    from_inventory: dict[str, int] = field(default_factory=dict)


def check_craftable(recipe: Recipe, player_level: int, quantity: int) -> None:
    if quantity <= 0:
        raise ValidationError("Quantity must be positive", {"quantity": quantity})
    if player_level < recipe.required_level:
        raise InvalidOperationError(
            f"Level {recipe.required_level} required to craft {recipe.name}",
            {"level": player_level, "required": recipe.required_level},
        )


def scale(amounts: Mapping[str, int], quantity: int) -> dict[str, int]:
    return {item_id: amount * quantity for item_id, amount in amounts.items()}


def plan_withdrawal(
    required: Mapping[str, int],
    storage: Mapping[str, int],
    inventory: Mapping[str, int],
) -> WithdrawalPlan:
    """storage + inventory 합이 부족하면 InsufficientResourcesError"""
    plan = WithdrawalPlan()
    for item_id, needed in required.items():
        in_storage = storage.get(item_id, 0)
        in_inventory = inventory.get(item_id, 0)
        if in_storage + in_inventory < needed:
            raise InsufficientResourcesError(
                item_id,
                {"required": needed, "available": in_storage + in_inventory},
            )
        take_storage = min(in_storage, needed)
        if take_storage:
            plan.from_storage[item_id] = take_storage
        if needed - take_storage:
            plan.from_inventory[item_id] = needed - take_storage
    return plan
