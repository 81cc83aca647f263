"""인벤토리/창고 Service - 행 관리, 무게 재계산

stage_* 메서드는 커밋하지 않는다 (다른 서비스의 트랜잭션 안에서 사용).
공개 변경 메서드는 플레이어 잠금 → stage → 커밋 → 캐시 무효화 순서.
"""

import logging
import math
from typing import Mapping, Union

from sqlalchemy.orm import Session

from wildcamp.core.cache import CacheScope, TTLCache
from wildcamp.core.catalog.enums import ItemType
from wildcamp.core.catalog.registry import CatalogRegistry
from wildcamp.core.errors import (
    InsufficientResourcesError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from wildcamp.core.locks import PlayerLocks
from wildcamp.core.player.inventory import calculate_weight
from wildcamp.core.player.inventory import can_carry as _fits
from wildcamp.core.player.models import ItemLocation, ItemStack
from wildcamp.db.models import InventoryItemModel, PlayerModel, StorageItemModel
from wildcamp.services.unit_of_work import (
    commit_or_rollback,
    invalidate_player_cache,
    rollback_on_error,
)

logger = logging.getLogger(__name__)

_ROW_MODELS = {
    ItemLocation.INVENTORY: InventoryItemModel,
    ItemLocation.STORAGE: StorageItemModel,
}

_LOCATION_SCOPES = {
    ItemLocation.INVENTORY: CacheScope.INVENTORY,
    ItemLocation.STORAGE: CacheScope.STORAGE,
}

CANNOT_CARRY = "Cannot carry more weight"


def parse_location(value: Union[str, ItemLocation]) -> ItemLocation:
    try:
        return ItemLocation(value)
    except ValueError:
        raise ValidationError(f"Unknown location: {value}") from None


class InventoryService:
    """인벤토리 + 창고 CRUD"""

    def __init__(
        self,
        db: Session,
        catalog: CatalogRegistry,
        cache: TTLCache,
        locks: PlayerLocks,
    ):
        self._db = db
        self._catalog = catalog
        self._cache = cache
        self._locks = locks

    # === 조회 ===

    def list_inventory(self, player_id: str) -> list[ItemStack]:
        return self._list(player_id, ItemLocation.INVENTORY)

    def list_storage(self, player_id: str) -> list[ItemStack]:
        return self._list(player_id, ItemLocation.STORAGE)

    def _list(self, player_id: str, location: ItemLocation) -> list[ItemStack]:
        self._require_player(player_id)
        return self._cache.get_or_set(
            _LOCATION_SCOPES[location],
            player_id,
            lambda: [
                ItemStack(row.resource_id, row.quantity, row.item_type)
                for row in self._rows(player_id, location)
            ],
        )

    def quantities(self, player_id: str, location: ItemLocation) -> dict[str, int]:
        """resource_id → 수량 (캐시 미사용)"""
        totals: dict[str, int] = {}
        for row in self._rows(player_id, location):
            totals[row.resource_id] = totals.get(row.resource_id, 0) + row.quantity
        return totals

    def holds(self, player_id: str, item_id: str) -> bool:
        """인벤토리 또는 창고에 1개 이상 보유"""
        return any(
            self.quantities(player_id, location).get(item_id, 0) > 0
            for location in ItemLocation
        )

    def can_carry(self, player_id: str, extra_weight: float) -> bool:
        player = self._require_player(player_id)
        return _fits(
            player.inventory_weight, extra_weight, player.max_inventory_weight
        )

    # === 공개 변경 ===

    def add_to_inventory(
        self,
        player_id: str,
        item_id: str,
        quantity: int,
        allow_overflow_to_storage: bool = False,
    ) -> dict[str, dict[str, int]]:
        """반환: {"inventory": {...}, "storage": {...}} 실제 배치 결과"""
        self._validate(item_id, quantity)
        with self._locks.hold(player_id), rollback_on_error(self._db):
            player = self._require_player(player_id)
            extra = self._catalog.item_weight(item_id) * quantity
            if not _fits(player.inventory_weight, extra, player.max_inventory_weight):
                if not allow_overflow_to_storage:
                    raise InvalidOperationError(
                        CANNOT_CARRY,
                        {
                            "current_weight": player.inventory_weight,
                            "max_weight": player.max_inventory_weight,
                            "extra_weight": extra,
                        },
                    )
            placement = self.stage_deposit(
                player, {item_id: quantity}, ItemLocation.INVENTORY
            )
            self._finish(player_id)
        return placement

    def add_to_storage(self, player_id: str, item_id: str, quantity: int) -> None:
        self._validate(item_id, quantity)
        with self._locks.hold(player_id), rollback_on_error(self._db):
            self._require_player(player_id)
            self.stage_add(player_id, ItemLocation.STORAGE, item_id, quantity)
            self._finish(player_id)

    def remove_from_inventory(
        self, player_id: str, item_id: str, quantity: int
    ) -> None:
        self._validate_quantity(quantity)
        with self._locks.hold(player_id), rollback_on_error(self._db):
            player = self._require_player(player_id)
            self.stage_remove(player_id, ItemLocation.INVENTORY, item_id, quantity)
            self.refresh_weight(player)
            self._finish(player_id)

    def remove_from_storage(self, player_id: str, item_id: str, quantity: int) -> None:
        self._validate_quantity(quantity)
        with self._locks.hold(player_id), rollback_on_error(self._db):
            self._require_player(player_id)
            self.stage_remove(player_id, ItemLocation.STORAGE, item_id, quantity)
            self._finish(player_id)

    def move_to_storage(self, player_id: str, item_id: str, quantity: int) -> None:
        self._validate_quantity(quantity)
        with self._locks.hold(player_id), rollback_on_error(self._db):
            player = self._require_player(player_id)
            self.stage_remove(player_id, ItemLocation.INVENTORY, item_id, quantity)
            self.stage_add(player_id, ItemLocation.STORAGE, item_id, quantity)
            self.refresh_weight(player)
            self._finish(player_id)
        logger.debug("Moved %d × %s to storage (%s)", quantity, item_id, player_id)

    def move_to_inventory(self, player_id: str, item_id: str, quantity: int) -> None:
        self._validate_quantity(quantity)
        with self._locks.hold(player_id), rollback_on_error(self._db):
            player = self._require_player(player_id)
            extra = self._catalog.item_weight(item_id) * quantity
            if not _fits(player.inventory_weight, extra, player.max_inventory_weight):
                raise InvalidOperationError(
                    CANNOT_CARRY,
                    {
                        "current_weight": player.inventory_weight,
                        "max_weight": player.max_inventory_weight,
                        "extra_weight": extra,
                    },
                )
            self.stage_remove(player_id, ItemLocation.STORAGE, item_id, quantity)
            self.stage_add(player_id, ItemLocation.INVENTORY, item_id, quantity)
            self.refresh_weight(player)
            self._finish(player_id)
        logger.debug("Moved %d × %s to inventory (%s)", quantity, item_id, player_id)

    def deposit(
        self,
        player_id: str,
        items: Mapping[str, int],
        destination: Union[str, ItemLocation] = ItemLocation.INVENTORY,
    ) -> dict[str, dict[str, int]]:
        destination = parse_location(destination)
        with self._locks.hold(player_id), rollback_on_error(self._db):
            player = self._require_player(player_id)
            placement = self.stage_deposit(player, items, destination)
            self._finish(player_id)
        return placement

    def recalculate_weight(self, player_id: str) -> float:
        with self._locks.hold(player_id), rollback_on_error(self._db):
            player = self._require_player(player_id)
            weight = self.refresh_weight(player)
            self._finish(player_id)
        return weight

    # === stage (커밋 없음) ===

    def stage_add(
        self, player_id: str, location: ItemLocation, item_id: str, quantity: int
    ) -> None:
        """같은 (resource_id, item_type) 행이 있으면 합친다."""
        if quantity <= 0:
            return
        item_type = self._item_type(item_id)
        model = _ROW_MODELS[location]
        row = (
            self._db.query(model)
            .filter(
                model.player_id == player_id,
                model.resource_id == item_id,
                model.item_type == item_type,
            )
            .first()
        )
        if row is None:
            self._db.add(
                model(
                    player_id=player_id,
                    resource_id=item_id,
                    quantity=quantity,
                    item_type=item_type,
                )
            )
        else:
            row.quantity += quantity
        self._db.flush()

    def stage_remove(
        self, player_id: str, location: ItemLocation, item_id: str, quantity: int
    ) -> None:
        """행이 없거나 부족하면 InsufficientResourcesError. 0이 되면 행 삭제."""
        model = _ROW_MODELS[location]
        row = (
            self._db.query(model)
            .filter(model.player_id == player_id, model.resource_id == item_id)
            .first()
        )
        available = row.quantity if row is not None else 0
        if available < quantity:
            raise InsufficientResourcesError(
                item_id,
                {
                    "location": location.value,
                    "required": quantity,
                    "available": available,
                },
            )
        row.quantity -= quantity
        if row.quantity <= 0:
            self._db.delete(row)
        self._db.flush()

    def stage_deposit(
        self,
        player: PlayerModel,
        items: Mapping[str, int],
        destination: ItemLocation,
    ) -> dict[str, dict[str, int]]:
        """보상 지급. 인벤토리 목적지일 때 무게 초과분은 창고로."""
        placement: dict[str, dict[str, int]] = {
            ItemLocation.INVENTORY.value: {},
            ItemLocation.STORAGE.value: {},
        }
        current = player.inventory_weight
        for item_id, quantity in items.items():
            if quantity <= 0:
                continue
            to_inventory = 0
            if destination == ItemLocation.INVENTORY:
                unit = self._catalog.item_weight(item_id)
                if unit <= 0:
                    to_inventory = quantity
                else:
                    room = max(0.0, player.max_inventory_weight - current)
                    to_inventory = min(quantity, math.floor(room / unit + 1e-9))
                current += unit * to_inventory
            to_storage = quantity - to_inventory

            if to_inventory:
                self.stage_add(player.player_id, ItemLocation.INVENTORY, item_id, to_inventory)
                placement[ItemLocation.INVENTORY.value][item_id] = to_inventory
            if to_storage:
                self.stage_add(player.player_id, ItemLocation.STORAGE, item_id, to_storage)
                placement[ItemLocation.STORAGE.value][item_id] = to_storage

        if placement[ItemLocation.STORAGE.value] and destination == ItemLocation.INVENTORY:
            logger.info(
                "Inventory full for %s, overflow sent to storage: %s",
                player.player_id,
                placement[ItemLocation.STORAGE.value],
            )
        self.refresh_weight(player)
        return placement

    def refresh_weight(self, player: PlayerModel) -> float:
        """인벤토리 행에서 무게 재계산 (증분 갱신 금지)"""
        rows = self._rows(player.player_id, ItemLocation.INVENTORY)
        player.inventory_weight = calculate_weight(
            ((row.resource_id, row.quantity) for row in rows), self._catalog
        )
        return player.inventory_weight

    def clear_player(self, player_id: str) -> None:
        """인벤토리/창고 전체 삭제 (reset_player 전용, 커밋 없음)"""
        for model in _ROW_MODELS.values():
            self._db.query(model).filter(model.player_id == player_id).delete()
        self._db.flush()

    # === 내부 ===

    def _rows(self, player_id: str, location: ItemLocation) -> list:
        model = _ROW_MODELS[location]
        return (
            self._db.query(model)
            .filter(model.player_id == player_id)
            .order_by(model.id)
            .all()
        )

    def _require_player(self, player_id: str) -> PlayerModel:
        player = self._db.get(PlayerModel, player_id)
        if player is None:
            raise NotFoundError("Player")
        return player

    def _item_type(self, item_id: str) -> str:
        item_type = self._catalog.item_type_of(item_id)
        if item_type is None:
            logger.warning("Unknown catalog item stored: %s", item_id)
            return ItemType.RESOURCE.value
        return item_type.value

    def _validate_quantity(self, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError("Quantity must be positive", {"quantity": quantity})

    def _validate(self, item_id: str, quantity: int) -> None:
        self._validate_quantity(quantity)
        if not self._catalog.is_known_item(item_id):
            raise NotFoundError("Item")

    def _finish(self, player_id: str) -> None:
        commit_or_rollback(self._db)
        invalidate_player_cache(self._cache, player_id)
