"""작업장 Service - 제작법 실행

재료는 창고 우선, 부족분은 인벤토리에서 꺼낸다.
산출물은 플레이어 설정(crafted_items_destination)에 따라 배치한다.
"""

import logging

from sqlalchemy.orm import Session

from wildcamp.core.cache import TTLCache
from wildcamp.core.catalog.registry import CatalogRegistry
from wildcamp.core.crafting import check_craftable, plan_withdrawal, scale
from wildcamp.core.errors import NotFoundError
from wildcamp.core.event_bus import EventBus, GameEvent
from wildcamp.core.event_types import EventTypes
from wildcamp.core.locks import PlayerLocks
from wildcamp.core.player.models import ItemLocation, PlayerSettings
from wildcamp.services.inventory_service import InventoryService
from wildcamp.services.player_service import PlayerService
from wildcamp.services.unit_of_work import (
    commit_or_rollback,
    invalidate_player_cache,
    rollback_on_error,
)

logger = logging.getLogger(__name__)

SOURCE = "crafting_service"


class CraftingService:
    def __init__(
        self,
        db: Session,
        catalog: CatalogRegistry,
        cache: TTLCache,
        locks: PlayerLocks,
        event_bus: EventBus,
        players: PlayerService,
        inventory: InventoryService,
    ):
        self._db = db
        self._catalog = catalog
        self._cache = cache
        self._locks = locks
        self._bus = event_bus
        self._players = players
        self._inventory = inventory

    def craft(self, player_id: str, recipe_id: str, quantity: int = 1) -> dict:
        """제작 실행.

        Returns:
            {"recipe_id", "quantity", "consumed", "produced", "placement"}
        """
        with self._locks.hold(player_id), rollback_on_error(self._db):
            orm = self._players.require_model(player_id)
            recipe = self._catalog.get_recipe(recipe_id)
            if recipe is None:
                raise NotFoundError("Recipe")
            check_craftable(recipe, orm.level, quantity)

            required = scale(recipe.ingredients, quantity)
            plan = plan_withdrawal(
                required,
                storage=self._inventory.quantities(player_id, ItemLocation.STORAGE),
                inventory=self._inventory.quantities(player_id, ItemLocation.INVENTORY),
            )
            for item_id, amount in plan.from_storage.items():
                self._inventory.stage_remove(
                    player_id, ItemLocation.STORAGE, item_id, amount
                )
            for item_id, amount in plan.from_inventory.items():
                self._inventory.stage_remove(
                    player_id, ItemLocation.INVENTORY, item_id, amount
                )
            self._inventory.refresh_weight(orm)

            produced = scale(recipe.outputs, quantity)
            destination = PlayerSettings.from_dict(orm.settings).crafted_items_destination
            placement = self._inventory.stage_deposit(orm, produced, destination)

            commit_or_rollback(self._db)
            invalidate_player_cache(self._cache, player_id)

        logger.info(
            "Crafted %s × %d (player=%s): %s",
            recipe_id,
            quantity,
            player_id,
            produced,
        )
        self._bus.emit_all(
            GameEvent(
                event_type=EventTypes.ITEM_CRAFTED,
                data={
                    "player_id": player_id,
                    "item_id": item_id,
                    "quantity": amount,
                    "recipe_id": recipe_id,
                },
                source=SOURCE,
            )
            for item_id, amount in produced.items()
        )
        return {
            "recipe_id": recipe_id,
            "quantity": quantity,
            "consumed": required,
            "produced": produced,
            "placement": placement,
        }
