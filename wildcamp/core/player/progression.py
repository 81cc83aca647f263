"""레벨/경험치/코인 보상 계산

레벨은 항상 누적 경험치에서 처음부터 다시 계산한다.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Mapping

from wildcamp.core.catalog.registry import CatalogRegistry

from .models import PlayerState

logger = logging.getLogger(__name__)

BASE_LEVEL_EXPERIENCE = 100
LEVEL_EXPERIENCE_STEP = 50
COIN_REWARD_RATIO = 0.1


@dataclass(frozen=True)
class LevelCurve:
    """누적 경험치 곡선.

    레벨 2 도달: base
    레벨 N+1 (N >= 2): 레벨 N 임계값 + N × step
    예) base=100, step=50 → 100, 200, 350, 550, ...
    """

    base: int = BASE_LEVEL_EXPERIENCE
    step: int = LEVEL_EXPERIENCE_STEP

    def threshold(self, level: int) -> int:
        """level 도달에 필요한 누적 경험치"""
        if level <= 1:
            return 0
        total = self.base
        for n in range(2, level):
            total += n * self.step
        return total

    def level_for(self, total_experience: int) -> int:
        level = 1
        while total_experience >= self.threshold(level + 1):
            level += 1
        return level


DEFAULT_CURVE = LevelCurve()


@dataclass(frozen=True)
class ExperienceResult:
    gained: int
    previous_level: int
    level: int

    @property
    def leveled_up(self) -> bool:
        return self.level > self.previous_level


def calculate_level(total_experience: int, curve: LevelCurve = DEFAULT_CURVE) -> int:
    """누적 경험치 → 레벨 (최소 1)"""
    return curve.level_for(max(0, total_experience))


def apply_experience(
    player: PlayerState, gained: int, curve: LevelCurve = DEFAULT_CURVE
) -> ExperienceResult:
    """경험치 추가 후 레벨 재계산. player를 직접 갱신한다."""
    previous = player.level
    player.experience += max(0, gained)
    player.level = calculate_level(player.experience, curve)
    if player.level > previous:
        logger.info(
            "Player %s leveled up: %d → %d", player.player_id, previous, player.level
        )
    return ExperienceResult(gained=max(0, gained), previous_level=previous, level=player.level)


def experience_for(resources: Mapping[str, int], catalog: CatalogRegistry) -> int:
    """Σ (experience_value 또는 floor(value/2)) × 수량"""
    total = 0
    for resource_id, quantity in resources.items():
        resource = catalog.get_resource(resource_id)
        if resource is None:
            logger.warning("Experience skipped for unknown resource %s", resource_id)
            continue
        total += resource.experience_per_unit * quantity
    return total


def coin_reward_for(
    resources: Mapping[str, int],
    catalog: CatalogRegistry,
    ratio: float = COIN_REWARD_RATIO,
) -> int:
    """floor(ratio × Σ value × 수량)"""
    total_value = 0
    for resource_id, quantity in resources.items():
        resource = catalog.get_resource(resource_id)
        if resource is None:
            continue
        total_value += resource.value * quantity
    return math.floor(total_value * ratio)
