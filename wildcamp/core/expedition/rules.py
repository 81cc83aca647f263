"""원정 규칙 - 시작 조건, 자동 귀환, 채집 판정

수치는 Settings에서 주입된다 (ExpeditionRules.from_settings).
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from wildcamp.core.catalog.models import Biome, Resource
from wildcamp.core.catalog.registry import CatalogRegistry
from wildcamp.core.errors import InvalidOperationError, ValidationError
from wildcamp.core.player.inventory import can_carry
from wildcamp.core.player.models import PlayerState
from wildcamp.core.player.tools import has_required_tool
from wildcamp.core.player.vitals import vitals_low

from .models import ReturnReason

NO_CANDIDATE_TIME_MINUTES = 1


@dataclass(frozen=True)
class ExpeditionRules:
    min_vitals: float = 30
    auto_return_weight_ratio: float = 0.9
    auto_return_vitals_ratio: float = 0.1
    collection_success_rate: float = 0.85
    vitals_decay: float = 0.5
    retention_seconds: int = 300
    coin_reward_ratio: float = 0.1

    @classmethod
    def from_settings(cls, settings) -> ExpeditionRules:
        return cls(
            min_vitals=settings.MIN_VITALS_FOR_EXPEDITION,
            auto_return_weight_ratio=settings.AUTO_RETURN_WEIGHT_RATIO,
            auto_return_vitals_ratio=settings.AUTO_RETURN_VITALS_RATIO,
            collection_success_rate=settings.COLLECTION_SUCCESS_RATE,
            vitals_decay=settings.COLLECTION_VITALS_DECAY,
            retention_seconds=settings.EXPEDITION_RETENTION_SECONDS,
            coin_reward_ratio=settings.COIN_REWARD_RATIO,
        )

    # === 시작 조건 ===

    def check_vitals(self, player: PlayerState) -> None:
        if player.hunger < self.min_vitals:
            raise InvalidOperationError(
                "Too hungry to start an expedition",
                {"hunger": player.hunger, "required": self.min_vitals},
            )
        if player.thirst < self.min_vitals:
            raise InvalidOperationError(
                "Too thirsty to start an expedition",
                {"thirst": player.thirst, "required": self.min_vitals},
            )

    def check_level(self, player: PlayerState, biome: Biome) -> None:
        if player.level < biome.required_level:
            raise InvalidOperationError(
                f"Level {biome.required_level} required for {biome.name}",
                {"level": player.level, "required": biome.required_level},
            )

    def check_no_active(self, has_active: bool) -> None:
        if has_active:
            raise InvalidOperationError("Player already has an active expedition")

    def filter_selection(
        self, selected: Iterable[str], biome: Biome
    ) -> list[str]:
        """바이옴에서 얻을 수 없는 id는 버린다. 하나도 안 남으면 ValidationError."""
        seen: set[str] = set()
        valid: list[str] = []
        for resource_id in selected:
            if resource_id in biome.resource_ids and resource_id not in seen:
                seen.add(resource_id)
                valid.append(resource_id)
        if not valid:
            raise ValidationError(
                "No valid resources selected for this biome",
                {"biome_id": biome.biome_id},
            )
        return valid

    def check_tools(
        self, player: PlayerState, selected: Iterable[str], catalog: CatalogRegistry
    ) -> None:
        """선택 자원마다 필요한 도구를 장착하고 있어야 한다"""
        for resource_id in selected:
            resource = catalog.get_resource(resource_id)
            if resource is None or has_required_tool(player, resource, catalog):
                continue
            raise InvalidOperationError(
                f"Missing required tool for {resource.name}",
                {
                    "resource_id": resource_id,
                    "required_tool": resource.required_tool.value,
                },
            )

    # === 틱 ===

    def auto_return_reason(self, player: PlayerState) -> Optional[ReturnReason]:
        """채집 전 평가. 우선순위: hunger_low > thirst_low > inventory_full"""
        if vitals_low(player.hunger, player.max_hunger, self.auto_return_vitals_ratio):
            return ReturnReason.HUNGER_LOW
        if vitals_low(player.thirst, player.max_thirst, self.auto_return_vitals_ratio):
            return ReturnReason.THIRST_LOW
        if (
            player.inventory_weight
            >= player.max_inventory_weight * self.auto_return_weight_ratio
        ):
            return ReturnReason.INVENTORY_FULL
        return None

    def candidates(
        self,
        selected: Sequence[str],
        biome_resources: Iterable[Resource],
        current_distance: float,
    ) -> list[Resource]:
        """선택 + 바이옴 스폰 + 거리 조건을 모두 만족하는 자원"""
        return [
            resource
            for resource in biome_resources
            if resource.resource_id in selected
            and resource.distance_from_camp <= current_distance
        ]

    def pick(self, candidates: Sequence[Resource], rng: random.Random) -> Resource:
        return rng.choice(list(candidates))

    def roll_success(self, rng: random.Random) -> bool:
        return rng.random() < self.collection_success_rate

    def fits(self, player: PlayerState, resource: Resource) -> bool:
        return can_carry(
            player.inventory_weight, resource.weight, player.max_inventory_weight
        )

    def collection_time(self, resource: Optional[Resource], success: bool) -> int:
        """성공: 자원 채집 시간, 실패: 절반 올림, 후보 없음: 1분"""
        if resource is None:
            return NO_CANDIDATE_TIME_MINUTES
        if success:
            return resource.collection_time_minutes
        return math.ceil(resource.collection_time_minutes / 2)
