"""허기/갈증 (float, [0, max] 클램프)"""

from __future__ import annotations

from dataclasses import dataclass

from .models import PlayerState


def clamp_vital(value: float, maximum: float) -> float:
    return max(0.0, min(float(value), float(maximum)))


def restore_vitals(player: PlayerState, hunger: float = 0, thirst: float = 0) -> None:
    player.hunger = clamp_vital(player.hunger + hunger, player.max_hunger)
    player.thirst = clamp_vital(player.thirst + thirst, player.max_thirst)


def decay_vitals(player: PlayerState, amount: float) -> None:
    """채집 1회당 허기/갈증 동일량 감소"""
    restore_vitals(player, hunger=-amount, thirst=-amount)


def vitals_low(current: float, maximum: float, ratio: float) -> bool:
    """current ≤ ratio × maximum"""
    return current <= maximum * ratio


@dataclass(frozen=True)
class PassiveVitals:
    """시간 경과에 따른 허기/갈증 감소와 자동 소비 기준.

    감소는 interval_seconds 단위로만 일어난다. 주기를 채우지 못한 나머지
    시간은 버리지 않고 다음 계산으로 넘긴다.
    """

    interval_seconds: int = 120
    hunger_decay: float = 3
    thirst_decay: float = 4
    auto_consume_ratio: float = 0.15

    @classmethod
    def from_settings(cls, settings) -> PassiveVitals:
        return cls(
            interval_seconds=settings.VITALS_DECAY_INTERVAL_SECONDS,
            hunger_decay=settings.PASSIVE_HUNGER_DECAY,
            thirst_decay=settings.PASSIVE_THIRST_DECAY,
            auto_consume_ratio=settings.AUTO_CONSUME_RATIO,
        )

    def intervals(self, elapsed_seconds: float) -> int:
        """경과 시간 안에 완료된 주기 수. 음수 경과(시계 역행)는 0"""
        if elapsed_seconds <= 0:
            return 0
        return int(elapsed_seconds // self.interval_seconds)

    def degrade(self, player: PlayerState, intervals: int) -> None:
        if intervals <= 0:
            return
        restore_vitals(
            player,
            hunger=-self.hunger_decay * intervals,
            thirst=-self.thirst_decay * intervals,
        )

    def hungry(self, player: PlayerState) -> bool:
        return vitals_low(player.hunger, player.max_hunger, self.auto_consume_ratio)

    def thirsty(self, player: PlayerState) -> bool:
        return vitals_low(player.thirst, player.max_thirst, self.auto_consume_ratio)
