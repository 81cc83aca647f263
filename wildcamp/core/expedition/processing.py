"""원정 완료 시 동물 가공 / 지급 차액 계산"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Mapping

from wildcamp.core.catalog.registry import CatalogRegistry

logger = logging.getLogger(__name__)


def process_animals(
    collected: Mapping[str, int], catalog: CatalogRegistry
) -> dict[str, int]:
    """동물/물고기를 부위로 변환. 가공표에 없는 자원은 그대로 통과.

    예) {res_veado: 1} → {res_carne: 3, res_couro: 2, res_ossos: 4, res_pelo: 1}
    """
    processed: Counter[str] = Counter()
    for resource_id, quantity in collected.items():
        if quantity <= 0:
            continue
        parts = catalog.animal_yield(resource_id)
        if parts is None:
            processed[resource_id] += quantity
            continue
        for part_id, per_animal in parts.items():
            processed[part_id] += per_animal * quantity
        logger.debug("Processed %d × %s into %s", quantity, resource_id, parts)
    return dict(processed)


def reward_delta(
    processed: Mapping[str, int], granted: Mapping[str, int]
) -> dict[str, int]:
    """processed − granted, 양수 항목만"""
    delta: dict[str, int] = {}
    for resource_id, quantity in processed.items():
        remaining = quantity - granted.get(resource_id, 0)
        if remaining > 0:
            delta[resource_id] = remaining
    return delta
