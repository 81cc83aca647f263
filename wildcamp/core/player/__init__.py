"""플레이어 장부 Core 패키지"""

from wildcamp.core.player.inventory import calculate_weight, can_carry
from wildcamp.core.player.models import (
    EQUIPMENT_SLOTS,
    ItemLocation,
    ItemStack,
    PlayerSettings,
    PlayerState,
)
from wildcamp.core.player.progression import (
    ExperienceResult,
    LevelCurve,
    apply_experience,
    calculate_level,
    coin_reward_for,
    experience_for,
)
from wildcamp.core.player.tools import has_required_tool
from wildcamp.core.player.vitals import (
    PassiveVitals,
    clamp_vital,
    decay_vitals,
    restore_vitals,
    vitals_low,
)

__all__ = [
    # models
    "EQUIPMENT_SLOTS",
    "ItemLocation",
    "ItemStack",
    "PlayerSettings",
    "PlayerState",
    # progression
    "LevelCurve",
    "ExperienceResult",
    "calculate_level",
    "apply_experience",
    "experience_for",
    "coin_reward_for",
    # vitals
    "PassiveVitals",
    "clamp_vital",
    "decay_vitals",
    "restore_vitals",
    "vitals_low",
    # inventory
    "calculate_weight",
    "can_carry",
    # tools
    "has_required_tool",
]
