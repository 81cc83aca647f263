"""인벤토리 무게 계산"""

from __future__ import annotations

from typing import Iterable

from wildcamp.core.catalog.registry import CatalogRegistry


def calculate_weight(
    rows: Iterable[tuple[str, int]], catalog: CatalogRegistry
) -> float:
    """(item_id, quantity) 목록의 총 무게. 미등록 id는 0으로 계산."""
    total = 0.0
    for item_id, quantity in rows:
        total += catalog.item_weight(item_id) * quantity
    return round(total, 4)


def can_carry(current_weight: float, extra_weight: float, max_weight: float) -> bool:
    """아이템 추가 가능 여부"""
    return current_weight + extra_weight <= max_weight + 1e-9
