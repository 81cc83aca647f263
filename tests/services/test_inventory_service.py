"""InventoryService 통합 테스트 (인메모리 SQLite)"""

import pytest

from wildcamp.core.errors import (
    InsufficientResourcesError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from wildcamp.core.player.models import ItemLocation
from wildcamp.db.models import InventoryItemModel


def _inventory(env, pid):
    return {s.resource_id: s.quantity for s in env.inventory.list_inventory(pid)}


def _storage(env, pid):
    return {s.resource_id: s.quantity for s in env.inventory.list_storage(pid)}


class TestAdd:
    def test_add_merges_rows(self, env, player):
        pid = player.player_id
        env.inventory.add_to_inventory(pid, "res_fibra", 3)
        env.inventory.add_to_inventory(pid, "res_fibra", 2)
        rows = (
            env.db.query(InventoryItemModel)
            .filter(InventoryItemModel.player_id == pid)
            .all()
        )
        assert len(rows) == 1
        assert rows[0].quantity == 5
        assert env.players.get_player(pid).inventory_weight == 5

    def test_item_type_recorded(self, env, player):
        pid = player.player_id
        env.inventory.add_to_inventory(pid, "eq_machado", 1)
        stacks = env.inventory.list_inventory(pid)
        assert stacks[0].item_type == "equipment"

    def test_too_heavy_rejected(self, env, player):
        pid = player.player_id
        with pytest.raises(InvalidOperationError, match="Cannot carry"):
            env.inventory.add_to_inventory(pid, "res_fibra", 51)
        assert _inventory(env, pid) == {}

    def test_overflow_to_storage(self, env, player):
        pid = player.player_id
        placement = env.inventory.add_to_inventory(
            pid, "res_fibra", 60, allow_overflow_to_storage=True
        )
        assert placement == {
            "inventory": {"res_fibra": 50},
            "storage": {"res_fibra": 10},
        }
        assert env.players.get_player(pid).inventory_weight == 50

    def test_unknown_item(self, env, player):
        with pytest.raises(NotFoundError):
            env.inventory.add_to_inventory(player.player_id, "res_nope", 1)

    def test_non_positive_quantity(self, env, player):
        with pytest.raises(ValidationError):
            env.inventory.add_to_storage(player.player_id, "res_fibra", 0)

    def test_unknown_player(self, env):
        with pytest.raises(NotFoundError, match="Player"):
            env.inventory.list_inventory("player_missing")


class TestRemoveAndMove:
    def test_remove_deletes_empty_row(self, env, player):
        pid = player.player_id
        env.inventory.add_to_inventory(pid, "res_fibra", 2)
        env.inventory.remove_from_inventory(pid, "res_fibra", 2)
        assert _inventory(env, pid) == {}
        assert env.players.get_player(pid).inventory_weight == 0

    def test_remove_more_than_held(self, env, player):
        pid = player.player_id
        env.inventory.add_to_storage(pid, "res_fibra", 1)
        with pytest.raises(InsufficientResourcesError) as exc:
            env.inventory.remove_from_storage(pid, "res_fibra", 2)
        assert exc.value.details["available"] == 1
        assert _storage(env, pid) == {"res_fibra": 1}

    def test_move_to_storage_updates_weight(self, env, player):
        pid = player.player_id
        env.inventory.add_to_inventory(pid, "res_gravetos", 4)
        env.inventory.move_to_storage(pid, "res_gravetos", 3)
        assert _inventory(env, pid) == {"res_gravetos": 1}
        assert _storage(env, pid) == {"res_gravetos": 3}
        assert env.players.get_player(pid).inventory_weight == 2

    def test_move_to_inventory_checks_weight(self, env, player):
        pid = player.player_id
        env.inventory.add_to_storage(pid, "res_urso", 3)
        with pytest.raises(InvalidOperationError):
            env.inventory.move_to_inventory(pid, "res_urso", 3)
        env.inventory.move_to_inventory(pid, "res_urso", 2)
        assert _inventory(env, pid) == {"res_urso": 2}
        assert _storage(env, pid) == {"res_urso": 1}

    def test_cached_listing_invalidated(self, env, player):
        pid = player.player_id
        assert _inventory(env, pid) == {}
        env.inventory.add_to_inventory(pid, "res_fibra", 1)
        assert _inventory(env, pid) == {"res_fibra": 1}


class TestDeposit:
    def test_deposit_to_storage(self, env, player):
        pid = player.player_id
        placement = env.inventory.deposit(pid, {"res_carne": 2}, "storage")
        assert placement["storage"] == {"res_carne": 2}
        assert env.inventory.quantities(pid, ItemLocation.STORAGE) == {"res_carne": 2}

    def test_unknown_destination(self, env, player):
        with pytest.raises(ValidationError):
            env.inventory.deposit(player.player_id, {"res_carne": 1}, "backpack")

    def test_holds_either_location(self, env, player):
        pid = player.player_id
        assert not env.inventory.holds(pid, "eq_faca")
        env.inventory.add_to_storage(pid, "eq_faca", 1)
        assert env.inventory.holds(pid, "eq_faca")

    def test_recalculate_weight(self, env, player):
        pid = player.player_id
        env.inventory.add_to_inventory(pid, "res_carne", 2)
        assert env.inventory.recalculate_weight(pid) == pytest.approx(4.6)
