"""플레이어 장부 Service - 등록/조회/설정/소비/장비

architecture: Service → Core, Service → DB 허용
다른 서비스의 반응이 필요한 변화는 EventBus로 알린다.
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from wildcamp.core.cache import CacheScope, TTLCache
from wildcamp.core.catalog.enums import EquipmentSlot, ResourceCategory
from wildcamp.core.catalog.registry import CatalogRegistry
from wildcamp.core.clock import utcnow
from wildcamp.core.errors import (
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from wildcamp.core.locks import PlayerLocks
from wildcamp.core.player.models import (
    EQUIPMENT_SLOTS,
    ItemLocation,
    PlayerSettings,
    PlayerState,
)
from wildcamp.core.player.vitals import PassiveVitals, restore_vitals
from wildcamp.db.models import PlayerModel, PlayerQuestModel
from wildcamp.services.expedition_repository import ExpeditionRepository
from wildcamp.services.inventory_service import InventoryService, parse_location
from wildcamp.services.unit_of_work import (
    commit_or_rollback,
    invalidate_player_cache,
    rollback_on_error,
)

logger = logging.getLogger(__name__)

MAX_USERNAME_LENGTH = 50

CONSUMABLE_SLOTS = ("food", "drink")


def player_to_state(orm: PlayerModel) -> PlayerState:
    """ORM → Core"""
    equipped = {slot: None for slot in EQUIPMENT_SLOTS}
    equipped.update(orm.equipped or {})
    return PlayerState(
        player_id=orm.player_id,
        username=orm.username,
        hunger=orm.hunger,
        max_hunger=orm.max_hunger,
        thirst=orm.thirst,
        max_thirst=orm.max_thirst,
        level=orm.level,
        experience=orm.experience,
        coins=orm.coins,
        inventory_weight=orm.inventory_weight,
        max_inventory_weight=orm.max_inventory_weight,
        equipped=equipped,
        settings=PlayerSettings.from_dict(orm.settings),
        equipped_food=orm.equipped_food,
        equipped_drink=orm.equipped_drink,
    )


def apply_state(orm: PlayerModel, state: PlayerState) -> None:
    """Core → ORM. inventory_weight는 행 기준 재계산 값만 쓰므로 제외.
    JSON 컬럼은 새 dict로 교체한다 (in-place 변경은 감지되지 않음).
    """
    orm.hunger = state.hunger
    orm.thirst = state.thirst
    orm.level = state.level
    orm.experience = state.experience
    orm.coins = state.coins
    orm.equipped = dict(state.equipped)
    orm.settings = state.settings.to_dict()
    orm.equipped_food = state.equipped_food
    orm.equipped_drink = state.equipped_drink


class PlayerService:
    """플레이어 CRUD + 소비/장비"""

    def __init__(
        self,
        db: Session,
        catalog: CatalogRegistry,
        cache: TTLCache,
        locks: PlayerLocks,
        inventory: InventoryService,
        expeditions: Optional[ExpeditionRepository] = None,
        max_hunger: float = 100,
        max_thirst: float = 100,
        max_inventory_weight: float = 50.0,
        passive: Optional[PassiveVitals] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._db = db
        self._catalog = catalog
        self._cache = cache
        self._locks = locks
        self._inventory = inventory
        self._expeditions = expeditions
        self._max_hunger = max_hunger
        self._max_thirst = max_thirst
        self._max_inventory_weight = max_inventory_weight
        self._passive = passive or PassiveVitals()
        self._clock = clock

    # === 등록/조회 ===

    def register_player(self, username: str) -> PlayerState:
        name = (username or "").strip()
        if not name:
            raise ValidationError("Username is required")
        if len(name) > MAX_USERNAME_LENGTH:
            raise ValidationError(
                f"Username must be at most {MAX_USERNAME_LENGTH} characters"
            )
        existing = (
            self._db.query(PlayerModel).filter(PlayerModel.username == name).first()
        )
        if existing is not None:
            raise ValidationError("Username already taken", {"username": name})

        orm = PlayerModel(
            player_id=f"player_{uuid.uuid4().hex[:12]}",
            username=name,
            created_at=self._clock(),
        )
        self._apply_defaults(orm)
        self._db.add(orm)
        commit_or_rollback(self._db)

        logger.info("Player registered: %s (%s)", name, orm.player_id)
        return player_to_state(orm)

    def get_player(self, player_id: str) -> PlayerState:
        state = self._cache.get_or_set(
            CacheScope.PLAYER,
            player_id,
            lambda: self._load_state(player_id),
        )
        if state is None:
            raise NotFoundError("Player")
        return replace(
            state, equipped=dict(state.equipped), settings=replace(state.settings)
        )

    def require_model(self, player_id: str) -> PlayerModel:
        """다른 서비스의 트랜잭션에서 사용. 캐시 우회."""
        orm = self._db.get(PlayerModel, player_id)
        if orm is None:
            raise NotFoundError("Player")
        return orm

    def _load_state(self, player_id: str) -> Optional[PlayerState]:
        orm = self._db.get(PlayerModel, player_id)
        return player_to_state(orm) if orm is not None else None

    # === 설정 ===

    def update_settings(self, player_id: str, **changes: Any) -> PlayerState:
        unknown = set(changes) - set(PlayerSettings().to_dict())
        if unknown:
            raise ValidationError(
                "Unknown settings", {"settings": sorted(unknown)}
            )
        with self._locks.hold(player_id), rollback_on_error(self._db):
            orm = self.require_model(player_id)
            state = player_to_state(orm)
            current = state.settings
            if "auto_storage" in changes:
                current.auto_storage = bool(changes["auto_storage"])
            if "auto_complete_quests" in changes:
                current.auto_complete_quests = bool(changes["auto_complete_quests"])
            if "crafted_items_destination" in changes:
                current.crafted_items_destination = parse_location(
                    changes["crafted_items_destination"]
                )
            if "auto_consume" in changes:
                current.auto_consume = bool(changes["auto_consume"])
            orm.settings = current.to_dict()
            self._finish(player_id)
            return player_to_state(orm)

    def reset_player(self, player_id: str) -> PlayerState:
        """기본값 복원 + 인벤토리/창고/퀘스트/원정 삭제 (테스트 보조)"""
        with self._locks.hold(player_id), rollback_on_error(self._db):
            orm = self.require_model(player_id)
            self._apply_defaults(orm)
            self._inventory.clear_player(player_id)
            self._db.query(PlayerQuestModel).filter(
                PlayerQuestModel.player_id == player_id
            ).delete()
            in_session = (
                self._expeditions is not None and self._expeditions.transactional
            )
            if in_session:
                self._expeditions.delete_for_player(player_id)
            commit_or_rollback(self._db)
            if self._expeditions is not None and not in_session:
                self._expeditions.delete_for_player(player_id)
            invalidate_player_cache(self._cache, player_id)
            logger.info("Player reset: %s", player_id)
            return player_to_state(orm)

    def _apply_defaults(self, orm: PlayerModel) -> None:
        orm.hunger = self._max_hunger
        orm.max_hunger = self._max_hunger
        orm.thirst = self._max_thirst
        orm.max_thirst = self._max_thirst
        orm.level = 1
        orm.experience = 0
        orm.coins = 0
        orm.inventory_weight = 0.0
        orm.max_inventory_weight = self._max_inventory_weight
        orm.equipped = {slot: None for slot in EQUIPMENT_SLOTS}
        orm.settings = PlayerSettings().to_dict()
        orm.equipped_food = None
        orm.equipped_drink = None
        orm.vitals_updated_at = self._clock()

    # === 소비 ===

    def consume_item(
        self,
        player_id: str,
        item_id: str,
        quantity: int = 1,
        location: str = ItemLocation.INVENTORY.value,
    ) -> dict:
        """음식/음료 소비. 회복량 × 수량, 최대치 클램프.

        Returns:
            {"hunger", "thirst", "hunger_restored", "thirst_restored"}
        """
        with self._locks.hold(player_id), rollback_on_error(self._db):
            orm = self.require_model(player_id)
            if quantity <= 0:
                raise ValidationError(
                    "Quantity must be positive", {"quantity": quantity}
                )
            where = parse_location(location)

            resource = self._catalog.get_resource(item_id)
            if resource is None or not resource.is_consumable:
                raise InvalidOperationError(
                    "Item is not consumable", {"item_id": item_id}
                )

            self._inventory.stage_remove(player_id, where, item_id, quantity)
            if where == ItemLocation.INVENTORY:
                self._inventory.refresh_weight(orm)

            state = player_to_state(orm)
            before_hunger, before_thirst = state.hunger, state.thirst
            restore_vitals(
                state,
                hunger=resource.hunger_restore * quantity,
                thirst=resource.thirst_restore * quantity,
            )
            apply_state(orm, state)
            self._finish(player_id)

        logger.info(
            "Player %s consumed %d × %s", player_id, quantity, item_id
        )
        return {
            "hunger": state.hunger,
            "thirst": state.thirst,
            "hunger_restored": state.hunger - before_hunger,
            "thirst_restored": state.thirst - before_thirst,
        }

    # === 시간 경과 ===

    def update_vitals(self, player_id: str) -> dict:
        """마지막 반영 이후 경과 시간만큼 허기/갈증 감소 후 자동 소비.

        완료된 주기만 반영하고 기준 시각을 주기 단위로 전진시킨다.
        자동 소비는 설정이 켜져 있을 때 창고에서 슬롯 아이템을 꺼내 먹는다.
        주기마다 슬롯당 최대 1개 (주기가 없어도 1회 검사).

        Returns:
            {"player": PlayerState, "intervals": int, "auto_consumed": [item_id, ...]}
        """
        with self._locks.hold(player_id), rollback_on_error(self._db):
            orm = self.require_model(player_id)
            now = self._clock()
            since = orm.vitals_updated_at or now
            intervals = self._passive.intervals((now - since).total_seconds())

            state = player_to_state(orm)
            self._passive.degrade(state, intervals)
            orm.vitals_updated_at = since + timedelta(
                seconds=intervals * self._passive.interval_seconds
            )
            consumed = self._auto_consume(state, max(intervals, 1))
            apply_state(orm, state)
            self._finish(player_id)

        if intervals or consumed:
            logger.info(
                "Player %s vitals: %d interval(s), hunger=%.1f thirst=%.1f, "
                "auto-consumed %s",
                player_id,
                intervals,
                state.hunger,
                state.thirst,
                consumed,
            )
        return {"player": state, "intervals": intervals, "auto_consumed": consumed}

    def _auto_consume(self, state: PlayerState, limit: int) -> list[str]:
        if not state.settings.auto_consume:
            return []
        consumed: list[str] = []
        for slot, low in (
            ("food", self._passive.hungry),
            ("drink", self._passive.thirsty),
        ):
            for _ in range(limit):
                item_id = getattr(state, f"equipped_{slot}")
                if item_id is None or not low(state):
                    break
                held = self._inventory.quantities(
                    state.player_id, ItemLocation.STORAGE
                ).get(item_id, 0)
                resource = self._catalog.get_resource(item_id)
                if held <= 0 or resource is None or not resource.is_consumable:
                    logger.info(
                        "Player %s auto-consume %s slot emptied (%s)",
                        state.player_id,
                        slot,
                        item_id,
                    )
                    setattr(state, f"equipped_{slot}", None)
                    break
                self._inventory.stage_remove(
                    state.player_id, ItemLocation.STORAGE, item_id, 1
                )
                restore_vitals(
                    state,
                    hunger=resource.hunger_restore,
                    thirst=resource.thirst_restore,
                )
                consumed.append(item_id)
                if held == 1:
                    setattr(state, f"equipped_{slot}", None)
        return consumed

    # === 장비 ===

    def equip_item(self, player_id: str, equipment_id: str) -> PlayerState:
        with self._locks.hold(player_id), rollback_on_error(self._db):
            orm = self.require_model(player_id)
            equipment = self._catalog.get_equipment(equipment_id)
            if equipment is None:
                raise NotFoundError("Equipment")
            if not self._inventory.holds(player_id, equipment_id):
                raise InvalidOperationError(
                    "Equipment not owned", {"equipment_id": equipment_id}
                )
            state = player_to_state(orm)
            state.equipped[equipment.slot.value] = equipment_id
            apply_state(orm, state)
            self._finish(player_id)
            logger.info(
                "Player %s equipped %s (%s)",
                player_id,
                equipment_id,
                equipment.slot.value,
            )
            return player_to_state(orm)

    def unequip_item(self, player_id: str, slot: str) -> PlayerState:
        try:
            slot_key = EquipmentSlot(slot).value
        except ValueError:
            raise ValidationError(f"Unknown equipment slot: {slot}") from None
        with self._locks.hold(player_id), rollback_on_error(self._db):
            orm = self.require_model(player_id)
            state = player_to_state(orm)
            state.equipped[slot_key] = None
            apply_state(orm, state)
            self._finish(player_id)
            return player_to_state(orm)

    def equip_consumable(self, player_id: str, item_id: str) -> PlayerState:
        """자동 소비 슬롯 지정. 음료 카테고리는 drink, 나머지는 food"""
        with self._locks.hold(player_id), rollback_on_error(self._db):
            orm = self.require_model(player_id)
            resource = self._catalog.get_resource(item_id)
            if resource is None:
                raise NotFoundError("Item")
            if not resource.is_consumable:
                raise InvalidOperationError(
                    "Item is not consumable", {"item_id": item_id}
                )
            if not self._inventory.holds(player_id, item_id):
                raise InvalidOperationError(
                    "Item not owned", {"item_id": item_id}
                )
            slot = "drink" if resource.category == ResourceCategory.DRINK else "food"
            state = player_to_state(orm)
            setattr(state, f"equipped_{slot}", item_id)
            apply_state(orm, state)
            self._finish(player_id)
            logger.info("Player %s set %s slot to %s", player_id, slot, item_id)
            return player_to_state(orm)

    def unequip_consumable(self, player_id: str, slot: str) -> PlayerState:
        if slot not in CONSUMABLE_SLOTS:
            raise ValidationError(f"Unknown consumable slot: {slot}")
        with self._locks.hold(player_id), rollback_on_error(self._db):
            orm = self.require_model(player_id)
            state = player_to_state(orm)
            setattr(state, f"equipped_{slot}", None)
            apply_state(orm, state)
            self._finish(player_id)
            return player_to_state(orm)

    def _finish(self, player_id: str) -> None:
        commit_or_rollback(self._db)
        invalidate_player_cache(self._cache, player_id)
