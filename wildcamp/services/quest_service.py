"""퀘스트 트래커 Service - Core↔DB 연결, EventBus 통신

architecture: Service → Core, Service → DB 허용
원정/제작 서비스의 결과는 EventBus 구독으로만 받는다.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from sqlalchemy.orm import Session

from wildcamp.core.cache import CacheScope, TTLCache
from wildcamp.core.catalog.enums import ObjectiveType
from wildcamp.core.catalog.models import Quest
from wildcamp.core.catalog.registry import CatalogRegistry
from wildcamp.core.clock import utcnow
from wildcamp.core.errors import InvalidOperationError, NotFoundError
from wildcamp.core.event_bus import EventBus, GameEvent
from wildcamp.core.event_types import EventTypes
from wildcamp.core.locks import PlayerLocks
from wildcamp.core.player.models import ItemLocation, PlayerSettings
from wildcamp.core.player.progression import (
    DEFAULT_CURVE,
    LevelCurve,
    apply_experience,
)
from wildcamp.core.quest.models import ObjectiveProgress, PlayerQuest, QuestStatus
from wildcamp.core.quest.progress import (
    apply_progress,
    evaluate_objectives,
    initial_progress,
    objective_match_from_event,
)
from wildcamp.db.models import PlayerQuestModel
from wildcamp.services.inventory_service import InventoryService
from wildcamp.services.player_service import (
    PlayerService,
    apply_state,
    player_to_state,
)
from wildcamp.services.unit_of_work import (
    commit_or_rollback,
    invalidate_player_cache,
    rollback_on_error,
)

logger = logging.getLogger(__name__)

SOURCE = "quest_service"

OBJECTIVES_INCOMPLETE = "Quest objectives not completed yet"


class QuestService:
    """플레이어 퀘스트 수명 주기 + 진행도 추적"""

    def __init__(
        self,
        db: Session,
        catalog: CatalogRegistry,
        cache: TTLCache,
        locks: PlayerLocks,
        event_bus: EventBus,
        players: PlayerService,
        inventory: InventoryService,
        max_active_quests: int = 5,
        curve: LevelCurve = DEFAULT_CURVE,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._db = db
        self._catalog = catalog
        self._cache = cache
        self._locks = locks
        self._bus = event_bus
        self._players = players
        self._inventory = inventory
        self._max_active = max_active_quests
        self._curve = curve
        self._clock = clock
        self._register_event_handlers()

    def _register_event_handlers(self) -> None:
        """EventBus 구독"""
        self._bus.subscribe(EventTypes.RESOURCE_COLLECTED, self._on_progress_event)
        self._bus.subscribe(EventTypes.ITEM_CRAFTED, self._on_progress_event)
        self._bus.subscribe(EventTypes.EXPEDITION_COMPLETED, self._on_progress_event)
        self._bus.subscribe(EventTypes.CREATURE_KILLED, self._on_progress_event)
        self._bus.subscribe(EventTypes.PLAYER_LEVELED_UP, self._on_player_leveled_up)

    # === 시작/취소/리셋 ===

    def start_quest(self, player_id: str, quest_id: str) -> PlayerQuest:
        with self._locks.hold(player_id), rollback_on_error(self._db):
            orm = self._players.require_model(player_id)
            quest = self._require_quest(quest_id)
            row = self._row(player_id, quest_id)

            if row is not None and row.status == QuestStatus.ACTIVE.value:
                raise InvalidOperationError("Quest already active")
            if row is not None and row.status == QuestStatus.COMPLETED.value:
                raise InvalidOperationError("Quest already completed")
            if orm.level < quest.required_level:
                raise InvalidOperationError(
                    f"Level {quest.required_level} required",
                    {"level": orm.level, "required": quest.required_level},
                )
            if self._active_count(player_id) >= self._max_active:
                raise InvalidOperationError(
                    f"Maximum of {self._max_active} active quests reached"
                )

            if row is None:
                row = PlayerQuestModel(
                    id=f"pq_{uuid.uuid4().hex[:12]}",
                    player_id=player_id,
                    quest_id=quest_id,
                )
                self._db.add(row)
            row.status = QuestStatus.ACTIVE.value
            row.progress = _progress_to_json(initial_progress(quest))
            row.started_at = self._clock()
            row.completed_at = None
            self._finish(player_id)
            result = _row_to_core(row)

        logger.info("Quest started: %s (player=%s)", quest_id, player_id)
        self._bus.emit_all(
            [
                GameEvent(
                    event_type=EventTypes.QUEST_STARTED,
                    data={"player_id": player_id, "quest_id": quest_id},
                    source=SOURCE,
                )
            ]
        )
        return result

    def cancel_quest(self, player_id: str, quest_id: str) -> PlayerQuest:
        """active만 취소 가능. 보상 없음. 이후 재시작 가능."""
        with self._locks.hold(player_id), rollback_on_error(self._db):
            self._players.require_model(player_id)
            self._require_quest(quest_id)
            row = self._require_active_row(player_id, quest_id)
            row.status = QuestStatus.CANCELLED.value
            self._finish(player_id)
            result = _row_to_core(row)

        logger.info("Quest cancelled: %s (player=%s)", quest_id, player_id)
        self._bus.emit_all(
            [
                GameEvent(
                    event_type=EventTypes.QUEST_CANCELLED,
                    data={"player_id": player_id, "quest_id": quest_id},
                    source=SOURCE,
                )
            ]
        )
        return result

    def reset_quest(self, player_id: str, quest_id: str) -> PlayerQuest:
        """completed → active, 진행도 초기화 (테스트 보조)"""
        with self._locks.hold(player_id), rollback_on_error(self._db):
            self._players.require_model(player_id)
            quest = self._require_quest(quest_id)
            row = self._row(player_id, quest_id)
            if row is None or row.status != QuestStatus.COMPLETED.value:
                raise InvalidOperationError("Only completed quests can be reset")
            row.status = QuestStatus.ACTIVE.value
            row.progress = _progress_to_json(initial_progress(quest))
            row.started_at = self._clock()
            row.completed_at = None
            self._finish(player_id)
            return _row_to_core(row)

    # === 진행도 ===

    def update_quest_progress(
        self, player_id: str, event_type: str, payload: Mapping[str, Any]
    ) -> list[str]:
        """이벤트 1건을 모든 active 퀘스트에 반영. 반환: 진행도가 바뀐 quest_id"""
        match = objective_match_from_event(event_type, payload)
        if match is None:
            return []
        objective_type, target, quantity = match

        touched: list[str] = []
        with self._locks.hold(player_id), rollback_on_error(self._db):
            for row in self._active_rows(player_id):
                quest = self._catalog.get_quest(row.quest_id)
                if quest is None:
                    logger.warning("Active quest %s missing from catalog", row.quest_id)
                    continue
                progress = _progress_from_json(row.progress)
                if apply_progress(progress, quest, objective_type, target, quantity):
                    row.progress = _progress_to_json(progress)
                    touched.append(row.quest_id)
            if touched:
                self._finish(player_id)
                logger.debug(
                    "Quest progress (%s %s +%d): %s",
                    objective_type.value,
                    target,
                    quantity,
                    touched,
                )

            for quest_id in touched:
                if self._is_active(player_id, quest_id):
                    self.check_quest_objectives(player_id, quest_id)
        return touched

    def check_quest_objectives(self, player_id: str, quest_id: str) -> dict:
        """목표 AND 판정 + 스냅샷 저장. auto_complete_quests면 즉시 완료.

        Returns:
            {"completed", "progress", "can_complete", "auto_completed", "rewards"}
        """
        with self._locks.hold(player_id), rollback_on_error(self._db):
            orm = self._players.require_model(player_id)
            quest = self._require_quest(quest_id)
            row = self._require_active_row(player_id, quest_id)

            progress = _progress_from_json(row.progress)
            all_done = evaluate_objectives(progress, quest, orm.level)
            row.progress = _progress_to_json(progress)
            self._finish(player_id)

            auto = PlayerSettings.from_dict(orm.settings).auto_complete_quests
            if all_done and auto:
                rewards = self.complete_quest(player_id, quest_id)
                return {
                    "completed": True,
                    "progress": rewards["progress"],
                    "can_complete": False,
                    "auto_completed": True,
                    "rewards": rewards,
                }
            return {
                "completed": all_done,
                "progress": _progress_to_json(progress),
                "can_complete": all_done,
                "auto_completed": False,
                "rewards": None,
            }

    def get_quest_progress(self, player_id: str, quest_id: str) -> dict:
        """저장된 진행도 조회 (QUEST_PROGRESS 캐시)"""
        self._players.require_model(player_id)
        self._require_quest(quest_id)
        snapshot = self._cache.get_or_set(
            CacheScope.QUEST_PROGRESS,
            player_id,
            lambda: {
                row.quest_id: {"status": row.status, "progress": dict(row.progress or {})}
                for row in self._rows(player_id)
            },
        )
        entry = snapshot.get(quest_id)
        if entry is None:
            return {"quest_id": quest_id, "status": QuestStatus.AVAILABLE.value, "progress": {}}
        return {"quest_id": quest_id, **entry}

    # === 완료 ===

    def complete_quest(self, player_id: str, quest_id: str) -> dict:
        """active 필수. 경험치(레벨 재계산) + 코인 + 아이템(항상 창고).

        Returns:
            {"quest_id", "experience", "coins", "items", "level", "leveled_up", "progress"}
        """
        with self._locks.hold(player_id), rollback_on_error(self._db):
            orm = self._players.require_model(player_id)
            quest = self._require_quest(quest_id)
            row = self._require_active_row(player_id, quest_id)

            rewards = quest.rewards
            player = player_to_state(orm)
            level_result = apply_experience(player, rewards.experience, self._curve)
            player.coins += rewards.coins
            apply_state(orm, player)
            for item_id, quantity in rewards.items.items():
                self._inventory.stage_add(
                    player_id, ItemLocation.STORAGE, item_id, quantity
                )

            row.status = QuestStatus.COMPLETED.value
            row.completed_at = self._clock()
            progress = dict(row.progress or {})
            self._finish(player_id)

            summary = {
                "quest_id": quest_id,
                "experience": rewards.experience,
                "coins": rewards.coins,
                "items": dict(rewards.items),
                "level": level_result.level,
                "leveled_up": level_result.leveled_up,
                "progress": progress,
            }
            events = [
                GameEvent(
                    event_type=EventTypes.QUEST_COMPLETED,
                    data={"player_id": player_id, "quest_id": quest_id},
                    source=SOURCE,
                )
            ]
            if level_result.leveled_up:
                events.append(
                    GameEvent(
                        event_type=EventTypes.PLAYER_LEVELED_UP,
                        data={"player_id": player_id, "level": level_result.level},
                        source=SOURCE,
                    )
                )

        logger.info(
            "Quest completed: %s (player=%s, exp=%d, coins=%d)",
            quest_id,
            player_id,
            rewards.experience,
            rewards.coins,
        )
        self._bus.emit_all(events)
        return summary

    def claim_quest(self, player_id: str, quest_id: str) -> dict:
        """수동 완료 요청. 목표 재판정 후 미달이면 InvalidOperationError."""
        with self._locks.hold(player_id):
            check = self.check_quest_objectives(player_id, quest_id)
            if check["auto_completed"]:
                return check["rewards"]
            if not check["completed"]:
                raise InvalidOperationError(
                    OBJECTIVES_INCOMPLETE, {"progress": check["progress"]}
                )
            return self.complete_quest(player_id, quest_id)

    # === 목록 ===

    def list_player_quests(self, player_id: str) -> list[dict]:
        """참여 가능한 퀘스트 + 상태/진행도. active 퀘스트는 여기서 재판정한다."""
        orm = self._players.require_model(player_id)
        for row in self._active_rows(player_id):
            if self._catalog.get_quest(row.quest_id) is None:
                continue
            if self._is_active(player_id, row.quest_id):
                self.check_quest_objectives(player_id, row.quest_id)

        rows = {row.quest_id: row for row in self._rows(player_id)}
        level = orm.level
        result = []
        for quest in self._catalog.all_quests():
            row = rows.get(quest.quest_id)
            if row is None and quest.required_level > level:
                continue
            entry = _row_to_core(row) if row is not None else None
            result.append(
                {
                    "quest": quest,
                    "status": entry.status if entry else QuestStatus.AVAILABLE,
                    "progress": entry.progress_dict() if entry else {},
                    "started_at": entry.started_at if entry else None,
                    "completed_at": entry.completed_at if entry else None,
                }
            )
        return result

    # === EventBus 핸들러 ===

    def _on_progress_event(self, event: GameEvent) -> None:
        player_id = event.data.get("player_id")
        if not player_id:
            logger.warning("%s without player_id ignored", event.event_type)
            return
        self.update_quest_progress(player_id, event.event_type, event.data)

    def _on_player_leveled_up(self, event: GameEvent) -> None:
        """레벨 목표 재판정"""
        player_id = event.data.get("player_id")
        if not player_id:
            return
        for row in self._active_rows(player_id):
            quest = self._catalog.get_quest(row.quest_id)
            if quest is None or not any(
                o.objective_type == ObjectiveType.LEVEL for o in quest.objectives
            ):
                continue
            if self._is_active(player_id, row.quest_id):
                self.check_quest_objectives(player_id, row.quest_id)

    # === 내부 ===

    def _require_quest(self, quest_id: str) -> Quest:
        quest = self._catalog.get_quest(quest_id)
        if quest is None:
            raise NotFoundError("Quest")
        return quest

    def _row(self, player_id: str, quest_id: str) -> Optional[PlayerQuestModel]:
        return (
            self._db.query(PlayerQuestModel)
            .filter(
                PlayerQuestModel.player_id == player_id,
                PlayerQuestModel.quest_id == quest_id,
            )
            .first()
        )

    def _rows(self, player_id: str) -> list[PlayerQuestModel]:
        return (
            self._db.query(PlayerQuestModel)
            .filter(PlayerQuestModel.player_id == player_id)
            .all()
        )

    def _active_rows(self, player_id: str) -> list[PlayerQuestModel]:
        return (
            self._db.query(PlayerQuestModel)
            .filter(
                PlayerQuestModel.player_id == player_id,
                PlayerQuestModel.status == QuestStatus.ACTIVE.value,
            )
            .all()
        )

    def _active_count(self, player_id: str) -> int:
        return len(self._active_rows(player_id))

    def _is_active(self, player_id: str, quest_id: str) -> bool:
        row = self._row(player_id, quest_id)
        return row is not None and row.status == QuestStatus.ACTIVE.value

    def _require_active_row(self, player_id: str, quest_id: str) -> PlayerQuestModel:
        row = self._row(player_id, quest_id)
        if row is None or row.status != QuestStatus.ACTIVE.value:
            raise InvalidOperationError(
                "Quest is not active",
                {"status": row.status if row is not None else QuestStatus.AVAILABLE.value},
            )
        return row

    def _finish(self, player_id: str) -> None:
        commit_or_rollback(self._db)
        invalidate_player_cache(self._cache, player_id)


def _progress_to_json(progress: Mapping[str, ObjectiveProgress]) -> dict:
    return {key: entry.to_dict() for key, entry in progress.items()}


def _progress_from_json(data: Optional[dict]) -> dict[str, ObjectiveProgress]:
    return {
        key: ObjectiveProgress.from_dict(entry) for key, entry in (data or {}).items()
    }


def _row_to_core(row: PlayerQuestModel) -> PlayerQuest:
    """ORM → Core"""
    return PlayerQuest(
        id=row.id,
        player_id=row.player_id,
        quest_id=row.quest_id,
        status=QuestStatus(row.status),
        progress=_progress_from_json(row.progress),
        started_at=row.started_at,
        completed_at=row.completed_at,
    )
