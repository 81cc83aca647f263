"""원정 엔진 Service - 시작/틱/완료/취소

architecture: Service → Core, Service → DB 허용
퀘스트 진행은 직접 호출하지 않고 커밋 이후 EventBus로 알린다.
"""

import logging
import random
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from wildcamp.core.cache import CacheScope, TTLCache
from wildcamp.core.catalog.registry import CatalogRegistry
from wildcamp.core.clock import utcnow
from wildcamp.core.errors import InvalidOperationError, NotFoundError, ValidationError
from wildcamp.core.event_bus import EventBus, GameEvent
from wildcamp.core.event_types import EventTypes
from wildcamp.core.expedition.models import (
    Expedition,
    ExpeditionStatus,
    ReturnReason,
    TickResult,
)
from wildcamp.core.expedition.processing import process_animals, reward_delta
from wildcamp.core.expedition.rules import ExpeditionRules
from wildcamp.core.locks import PlayerLocks
from wildcamp.core.player.models import ItemLocation, PlayerSettings
from wildcamp.core.player.progression import (
    DEFAULT_CURVE,
    LevelCurve,
    apply_experience,
    coin_reward_for,
    experience_for,
)
from wildcamp.core.player.tools import has_required_tool
from wildcamp.core.player.vitals import decay_vitals
from wildcamp.services.expedition_repository import ExpeditionRepository
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

SOURCE = "expedition_service"


class ExpeditionService:
    """원정 수명 주기: active → completed | cancelled"""

    def __init__(
        self,
        db: Session,
        catalog: CatalogRegistry,
        cache: TTLCache,
        locks: PlayerLocks,
        event_bus: EventBus,
        repository: ExpeditionRepository,
        players: PlayerService,
        inventory: InventoryService,
        rules: Optional[ExpeditionRules] = None,
        curve: LevelCurve = DEFAULT_CURVE,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._db = db
        self._catalog = catalog
        self._cache = cache
        self._locks = locks
        self._bus = event_bus
        self._repo = repository
        self._players = players
        self._inventory = inventory
        self._rules = rules or ExpeditionRules()
        self._curve = curve
        self._rng = rng or random.Random()
        self._clock = clock

    # === 시작 ===

    def start_expedition(
        self, player_id: str, biome_id: str, selected_resources: list[str]
    ) -> Expedition:
        with self._locks.hold(player_id), rollback_on_error(self._db):
            now = self._clock()
            self._purge(now)

            player = player_to_state(self._players.require_model(player_id))
            self._rules.check_vitals(player)

            biome = self._catalog.get_biome(biome_id)
            if biome is None:
                raise NotFoundError("Biome")
            self._rules.check_level(player, biome)
            self._rules.check_no_active(self._repo.find_active(player_id) is not None)
            selected = self._rules.filter_selection(selected_resources, biome)
            self._rules.check_tools(player, selected, self._catalog)

            expedition = Expedition(
                expedition_id=f"exp_{uuid.uuid4().hex[:12]}",
                player_id=player_id,
                biome_id=biome_id,
                selected_resources=selected,
                start_time=now,
            )
            self._persist(expedition, created=True)

        logger.info(
            "Expedition started: %s (player=%s, biome=%s, resources=%s)",
            expedition.expedition_id,
            player_id,
            biome_id,
            selected,
        )
        self._bus.emit_all(
            [
                GameEvent(
                    event_type=EventTypes.EXPEDITION_STARTED,
                    data={
                        "player_id": player_id,
                        "expedition_id": expedition.expedition_id,
                        "biome_id": biome_id,
                    },
                    source=SOURCE,
                )
            ]
        )
        return expedition

    # === 틱 ===

    def simulate_tick(
        self,
        expedition_id: str,
        current_distance: float,
        rng: Optional[random.Random] = None,
    ) -> TickResult:
        """채집 1회 시뮬레이션. 자동 귀환 판정이 채집보다 먼저."""
        if current_distance < 0:
            raise ValidationError(
                "Distance must not be negative", {"current_distance": current_distance}
            )
        rng = rng or self._rng
        player_id = self._require(expedition_id).player_id

        with self._locks.hold(player_id), rollback_on_error(self._db):
            expedition = self._require(expedition_id)
            if not expedition.is_active:
                raise InvalidOperationError(
                    "Expedition is not active", {"status": expedition.status.value}
                )
            expedition.current_distance = current_distance

            orm = self._players.require_model(player_id)
            player = player_to_state(orm)

            reason = self._rules.auto_return_reason(player)
            if reason is not None:
                return self._auto_return(expedition, reason)

            candidates = self._rules.candidates(
                expedition.selected_resources,
                self._catalog.resources_for_biome(expedition.biome_id),
                current_distance,
            )
            if not candidates:
                self._persist(expedition)
                return TickResult(
                    expedition=expedition,
                    collection_time=self._rules.collection_time(None, False),
                )

            resource = self._rules.pick(candidates, rng)
            if not self._rules.roll_success(rng):
                self._persist(expedition)
                logger.debug(
                    "Collection roll failed: %s (%s)", resource.resource_id, expedition_id
                )
                return TickResult(
                    expedition=expedition,
                    collection_time=self._rules.collection_time(resource, False),
                )

            if not self._rules.fits(player, resource):
                return self._auto_return(expedition, ReturnReason.INVENTORY_FULL)

            rid = resource.resource_id
            collected = dict(expedition.collected_resources)
            collected[rid] = collected.get(rid, 0) + 1
            granted = dict(expedition.granted_resources)
            granted[rid] = granted.get(rid, 0) + 1
            expedition.collected_resources = collected
            expedition.granted_resources = granted

            self._inventory.stage_add(player_id, ItemLocation.INVENTORY, rid, 1)
            self._inventory.refresh_weight(orm)
            player = player_to_state(orm)
            decay_vitals(player, self._rules.vitals_decay)
            apply_state(orm, player)

            self._persist(expedition)

        logger.debug(
            "Collected %s (expedition=%s, hunger=%.1f, thirst=%.1f, weight=%.1f)",
            rid,
            expedition_id,
            player.hunger,
            player.thirst,
            orm.inventory_weight,
        )
        return TickResult(
            expedition=expedition,
            resource_collected=rid,
            collection_time=self._rules.collection_time(resource, True),
        )

    def _auto_return(self, expedition: Expedition, reason: ReturnReason) -> TickResult:
        """귀환 사유 기록. 상태는 active 유지 (완료는 complete_expedition)."""
        expedition.return_reason = reason
        self._persist(expedition)
        logger.info(
            "Expedition %s should return: %s", expedition.expedition_id, reason.value
        )
        return TickResult(
            expedition=expedition,
            should_return=True,
            return_reason=reason,
            collection_time=0,
        )

    # === 완료 ===

    def complete_expedition(self, expedition_id: str) -> Expedition:
        """멱등. 이미 completed면 저장된 그대로 반환."""
        player_id = self._require(expedition_id).player_id
        events: list[GameEvent] = []

        with self._locks.hold(player_id), rollback_on_error(self._db):
            expedition = self._require(expedition_id)
            if expedition.status == ExpeditionStatus.COMPLETED:
                return expedition
            if expedition.status == ExpeditionStatus.CANCELLED:
                raise InvalidOperationError("Expedition was cancelled")

            processed = process_animals(expedition.collected_resources, self._catalog)
            delta = reward_delta(processed, expedition.granted_resources)

            orm = self._players.require_model(player_id)
            player_settings = PlayerSettings.from_dict(orm.settings)
            destination = (
                ItemLocation.STORAGE
                if player_settings.auto_storage
                else ItemLocation.INVENTORY
            )
            placement = self._inventory.stage_deposit(orm, delta, destination)

            gained = experience_for(processed, self._catalog)
            coins = coin_reward_for(
                processed, self._catalog, self._rules.coin_reward_ratio
            )
            player = player_to_state(orm)
            level_result = apply_experience(player, gained, self._curve)
            player.coins += coins
            apply_state(orm, player)

            now = self._clock()
            granted = dict(expedition.granted_resources)
            for resource_id, quantity in delta.items():
                granted[resource_id] = granted.get(resource_id, 0) + quantity
            expedition.status = ExpeditionStatus.COMPLETED
            expedition.collected_resources = processed
            expedition.granted_resources = granted
            expedition.experience_gained = gained
            expedition.coins_gained = coins
            expedition.end_time = now
            expedition.expires_at = now + timedelta(
                seconds=self._rules.retention_seconds
            )
            self._persist(expedition)

            events.append(
                GameEvent(
                    event_type=EventTypes.EXPEDITION_COMPLETED,
                    data={
                        "player_id": player_id,
                        "expedition_id": expedition_id,
                        "biome_id": expedition.biome_id,
                    },
                    source=SOURCE,
                )
            )
            for resource_id, quantity in processed.items():
                events.append(
                    GameEvent(
                        event_type=EventTypes.RESOURCE_COLLECTED,
                        data={
                            "player_id": player_id,
                            "expedition_id": expedition_id,
                            "resource_id": resource_id,
                            "quantity": quantity,
                        },
                        source=SOURCE,
                    )
                )
            if level_result.leveled_up:
                events.append(
                    GameEvent(
                        event_type=EventTypes.PLAYER_LEVELED_UP,
                        data={"player_id": player_id, "level": level_result.level},
                        source=SOURCE,
                    )
                )

        logger.info(
            "Expedition completed: %s (player=%s, exp=%d, coins=%d, placement=%s)",
            expedition_id,
            player_id,
            gained,
            coins,
            placement,
        )
        self._bus.emit_all(events)
        return expedition

    # === 취소 ===

    def cancel_expedition(self, expedition_id: str) -> Expedition:
        """보상 없음. 틱 중 이미 지급된 아이템은 그대로 둔다."""
        player_id = self._require(expedition_id).player_id

        with self._locks.hold(player_id), rollback_on_error(self._db):
            expedition = self._require(expedition_id)
            if expedition.status.is_finished:
                raise InvalidOperationError(
                    "Expedition already finished", {"status": expedition.status.value}
                )
            now = self._clock()
            expedition.status = ExpeditionStatus.CANCELLED
            expedition.end_time = now
            expedition.expires_at = now + timedelta(
                seconds=self._rules.retention_seconds
            )
            self._persist(expedition)

        logger.info("Expedition cancelled: %s (player=%s)", expedition_id, player_id)
        self._bus.emit_all(
            [
                GameEvent(
                    event_type=EventTypes.EXPEDITION_CANCELLED,
                    data={"player_id": player_id, "expedition_id": expedition_id},
                    source=SOURCE,
                )
            ]
        )
        return expedition

    # === 조회 ===

    def get_expedition(self, expedition_id: str) -> Expedition:
        return self._require(expedition_id)

    def get_active_expedition(self, player_id: str) -> Optional[Expedition]:
        self._players.require_model(player_id)
        return self._cache.get_or_set(
            CacheScope.ACTIVE_EXPEDITION,
            player_id,
            lambda: self._repo.find_active(player_id),
        )

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """보존 기간이 지난 종료 원정 삭제. 반환: 삭제 수"""
        count = self._purge(now or self._clock())
        if count:
            commit_or_rollback(self._db)
        return count

    def _purge(self, now: datetime) -> int:
        expired = self._repo.find_expired(now)
        for expedition_id in expired:
            self._repo.delete(expedition_id)
        if expired:
            logger.info("Purged %d expired expeditions", len(expired))
        return len(expired)

    def list_biome_resources(self, player_id: str, biome_id: str) -> list[dict]:
        """바이옴 자원 + 거리/도구 조건 + 현재 장비로 채집 가능 여부"""
        player = self._players.get_player(player_id)
        if self._catalog.get_biome(biome_id) is None:
            raise NotFoundError("Biome")
        return [
            {
                "resource": resource,
                "distance_from_camp": resource.distance_from_camp,
                "required_tool": resource.required_tool.value,
                "collectable": has_required_tool(player, resource, self._catalog),
            }
            for resource in self._catalog.resources_for_biome(biome_id)
        ]

    # === 내부 ===

    def _require(self, expedition_id: str) -> Expedition:
        expedition = self._repo.get(expedition_id)
        if expedition is None:
            raise NotFoundError("Expedition")
        return expedition

    def _persist(self, expedition: Expedition, created: bool = False) -> None:
        """원정 기록 + 커밋 + 캐시 무효화.

        트랜잭션 밖 저장소(인메모리)는 커밋이 성공한 뒤에만 쓴다.
        커밋이 실패하면 저장소에는 이전 상태가 그대로 남는다.
        """
        write = self._repo.create if created else self._repo.save
        if self._repo.transactional:
            write(expedition)
            commit_or_rollback(self._db)
        else:
            commit_or_rollback(self._db)
            write(expedition)
        invalidate_player_cache(self._cache, expedition.player_id)
