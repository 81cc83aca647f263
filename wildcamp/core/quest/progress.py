"""퀘스트 진행도 계산

- 진행도는 저장된 값 기준으로 단조 증가, required에서 클램프
- level 목표는 저장 진행도가 아니라 현재 플레이어 레벨로 판정
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from wildcamp.core.catalog.enums import ObjectiveType
from wildcamp.core.catalog.models import Quest
from wildcamp.core.event_types import EventTypes

from .models import ObjectiveProgress

# 이벤트 유형 → (목표 유형, payload의 target 필드)
EVENT_OBJECTIVES: dict[str, tuple[ObjectiveType, str]] = {
    EventTypes.RESOURCE_COLLECTED: (ObjectiveType.COLLECT, "resource_id"),
    EventTypes.ITEM_CRAFTED: (ObjectiveType.CRAFT, "item_id"),
    EventTypes.EXPEDITION_COMPLETED: (ObjectiveType.EXPEDITION, "biome_id"),
    EventTypes.CREATURE_KILLED: (ObjectiveType.KILL, "creature_id"),
}


def objective_match_from_event(
    event_type: str, payload: Mapping[str, Any]
) -> Optional[tuple[ObjectiveType, str, int]]:
    """이벤트 → (목표 유형, target, 증가량). 매칭 불가 시 None.

    expedition 이벤트는 항상 1회로 센다.
    """
    mapping = EVENT_OBJECTIVES.get(event_type)
    if mapping is None:
        return None
    objective_type, target_field = mapping
    target = payload.get(target_field)
    if target is None:
        return None
    if objective_type == ObjectiveType.EXPEDITION:
        quantity = 1
    else:
        quantity = int(payload.get("quantity", 1))
    return objective_type, str(target), quantity


def initial_progress(quest: Quest) -> dict[str, ObjectiveProgress]:
    return {
        objective.key: ObjectiveProgress(current=0, required=objective.quantity)
        for objective in quest.objectives
    }


def apply_progress(
    progress: dict[str, ObjectiveProgress],
    quest: Quest,
    objective_type: ObjectiveType,
    target: str,
    quantity: int,
) -> bool:
    """일치하는 목표마다 current += quantity (required 클램프). 반환: 변경 여부"""
    if quantity <= 0:
        return False
    changed = False
    for objective in quest.objectives:
        if objective.objective_type != objective_type or objective.target != target:
            continue
        entry = progress.get(objective.key)
        if entry is None:
            entry = ObjectiveProgress(current=0, required=objective.quantity)
            progress[objective.key] = entry
        new_current = min(entry.current + quantity, entry.required)
        if new_current != entry.current:
            entry.current = new_current
            changed = True
        entry.completed = entry.current >= entry.required
    return changed


def evaluate_objectives(
    progress: dict[str, ObjectiveProgress], quest: Quest, player_level: int
) -> bool:
    """모든 목표 달성 여부 (AND). level 목표 진행도는 현재 레벨로 갱신한다."""
    all_done = True
    for objective in quest.objectives:
        entry = progress.get(objective.key)
        if entry is None:
            entry = ObjectiveProgress(current=0, required=objective.quantity)
            progress[objective.key] = entry
        if objective.objective_type == ObjectiveType.LEVEL:
            entry.current = min(player_level, entry.required)
        entry.completed = entry.current >= entry.required
        all_done = all_done and entry.completed
    return all_done
