"""ExpeditionService 통합 테스트 (인메모리 SQLite + EventBus)"""

import random

import pytest

from wildcamp.core.errors import InvalidOperationError, NotFoundError, ValidationError
from wildcamp.core.event_types import EventTypes
from wildcamp.core.expedition import Expedition, ExpeditionStatus, ReturnReason
from wildcamp.core.player import calculate_weight
from wildcamp.core.player.models import ItemLocation
from wildcamp.services.expedition_repository import InMemoryExpeditionRepository

URSO_PARTS = {
    "res_carne": 8,
    "res_couro": 4,
    "res_ossos": 8,
    "res_pelo": 3,
    "res_banha": 3,
}


def _set_vitals(env, pid, hunger=None, thirst=None):
    orm = env.players.require_model(pid)
    if hunger is not None:
        orm.hunger = hunger
    if thirst is not None:
        orm.thirst = thirst
    env.db.commit()
    env.cache.invalidate_player(pid)


def _totals(env, pid):
    """인벤토리 + 창고 자원 합계 (장비 제외)"""
    totals = {}
    for location in ItemLocation:
        for item_id, qty in env.inventory.quantities(pid, location).items():
            if env.catalog.get_resource(item_id) is None:
                continue
            totals[item_id] = totals.get(item_id, 0) + qty
    return totals


def _arm(env, pid):
    """무기 + 칼 장착. 창고에 두고 장착하므로 인벤토리 무게는 그대로."""
    for equipment_id in ("eq_lanca", "eq_faca"):
        env.inventory.add_to_storage(pid, equipment_id, 1)
        env.players.equip_item(pid, equipment_id)


def _record(bus, event_type):
    seen = []
    bus.subscribe(event_type, seen.append)
    return seen


class TestStart:
    def test_start(self, env, player):
        exp = env.expeditions.start_expedition(
            player.player_id, "bio_floresta", ["res_fibra", "res_salmao"]
        )
        assert exp.status == ExpeditionStatus.ACTIVE
        assert exp.selected_resources == ["res_fibra"]
        assert exp.start_time == env.clock.now
        active = env.expeditions.get_active_expedition(player.player_id)
        assert active.expedition_id == exp.expedition_id

    def test_one_active_per_player(self, env, player):
        pid = player.player_id
        env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])
        with pytest.raises(InvalidOperationError, match="already has an active"):
            env.expeditions.start_expedition(pid, "bio_floresta", ["res_gravetos"])

    def test_new_expedition_after_completion(self, env, player):
        pid = player.player_id
        first = env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])
        env.expeditions.complete_expedition(first.expedition_id)
        assert env.expeditions.get_active_expedition(pid) is None
        second = env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])
        assert second.expedition_id != first.expedition_id

    def test_hungry_player(self, env, player):
        _set_vitals(env, player.player_id, hunger=20)
        with pytest.raises(InvalidOperationError, match="hungry"):
            env.expeditions.start_expedition(
                player.player_id, "bio_floresta", ["res_fibra"]
            )

    def test_level_gate(self, env, player):
        with pytest.raises(InvalidOperationError, match="Level 4"):
            env.expeditions.start_expedition(
                player.player_id, "bio_montanha", ["res_pedra"]
            )

    def test_unknown_biome(self, env, player):
        with pytest.raises(NotFoundError, match="Biome"):
            env.expeditions.start_expedition(player.player_id, "bio_nope", ["res_fibra"])

    def test_unknown_player(self, env):
        with pytest.raises(NotFoundError, match="Player"):
            env.expeditions.start_expedition("player_missing", "bio_floresta", ["res_fibra"])

    def test_no_valid_selection(self, env, player):
        with pytest.raises(ValidationError):
            env.expeditions.start_expedition(
                player.player_id, "bio_floresta", ["res_salmao"]
            )

    def test_started_event(self, env, player):
        seen = _record(env.bus, EventTypes.EXPEDITION_STARTED)
        exp = env.expeditions.start_expedition(
            player.player_id, "bio_floresta", ["res_fibra"]
        )
        assert len(seen) == 1
        assert seen[0].data["expedition_id"] == exp.expedition_id

    def test_missing_tool(self, env, player):
        with pytest.raises(InvalidOperationError, match="Missing required tool for Veado") as exc:
            env.expeditions.start_expedition(
                player.player_id, "bio_floresta", ["res_fibra", "res_veado"]
            )
        assert exc.value.details == {
            "resource_id": "res_veado",
            "required_tool": "weapon_and_knife",
        }
        assert env.expeditions.get_active_expedition(player.player_id) is None

    def test_knife_allows_small_game_only(self, env, player):
        pid = player.player_id
        env.inventory.add_to_storage(pid, "eq_faca", 1)
        env.players.equip_item(pid, "eq_faca")
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_coelho"])
        env.expeditions.cancel_expedition(exp.expedition_id)
        with pytest.raises(InvalidOperationError, match="Missing required tool"):
            env.expeditions.start_expedition(pid, "bio_floresta", ["res_veado"])

    def test_axe_unlocks_wood(self, env, player):
        pid = player.player_id
        with pytest.raises(InvalidOperationError, match="Madeira"):
            env.expeditions.start_expedition(pid, "bio_floresta", ["res_madeira"])
        env.inventory.add_to_storage(pid, "eq_machado", 1)
        env.players.equip_item(pid, "eq_machado")
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_madeira"])
        assert exp.selected_resources == ["res_madeira"]


class TestTick:
    def test_collects_into_inventory(self, env, player):
        pid = player.player_id
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])
        result = env.expeditions.simulate_tick(exp.expedition_id, 10)
        assert result.resource_collected == "res_fibra"
        assert result.collection_time == 2
        assert not result.should_return
        assert result.expedition.collected_resources == {"res_fibra": 1}
        state = env.players.get_player(pid)
        assert state.inventory_weight == 1
        assert state.hunger == 99.5
        assert state.thirst == 99.5

    def test_too_close(self, env, player):
        _arm(env, player.player_id)
        exp = env.expeditions.start_expedition(
            player.player_id, "bio_floresta", ["res_veado"]
        )
        result = env.expeditions.simulate_tick(exp.expedition_id, 20)
        assert result.resource_collected is None
        assert result.collection_time == 1
        assert result.expedition.current_distance == 20

    def test_failed_roll(self, env_factory, failing_rng):
        env = env_factory(rng=failing_rng)
        pid = env.players.register_player("unlucky").player_id
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_gravetos"])
        result = env.expeditions.simulate_tick(exp.expedition_id, 10)
        assert result.resource_collected is None
        assert result.collection_time == 2
        assert env.inventory.list_inventory(pid) == []

    def test_hunger_low_triggers_return(self, env, player):
        pid = player.player_id
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])
        _set_vitals(env, pid, hunger=9)
        result = env.expeditions.simulate_tick(exp.expedition_id, 10)
        assert result.should_return
        assert result.return_reason == ReturnReason.HUNGER_LOW
        assert result.resource_collected is None
        assert result.collection_time == 0
        stored = env.expeditions.get_expedition(exp.expedition_id)
        assert stored.status == ExpeditionStatus.ACTIVE
        assert stored.return_reason == ReturnReason.HUNGER_LOW

    def test_heavy_inventory_triggers_return(self, env, player):
        pid = player.player_id
        env.inventory.add_to_inventory(pid, "res_fibra", 45)
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])
        result = env.expeditions.simulate_tick(exp.expedition_id, 10)
        assert result.return_reason == ReturnReason.INVENTORY_FULL

    def test_resource_that_does_not_fit(self, env, player):
        pid = player.player_id
        env.inventory.add_to_inventory(pid, "res_fibra", 31)
        _arm(env, pid)
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_urso"])
        result = env.expeditions.simulate_tick(exp.expedition_id, 60)
        assert result.should_return
        assert result.return_reason == ReturnReason.INVENTORY_FULL
        assert result.collection_time == 0
        assert _totals(env, pid) == {"res_fibra": 31}

    def test_negative_distance(self, env, player):
        exp = env.expeditions.start_expedition(
            player.player_id, "bio_floresta", ["res_fibra"]
        )
        with pytest.raises(ValidationError):
            env.expeditions.simulate_tick(exp.expedition_id, -1)

    def test_unknown_expedition(self, env):
        with pytest.raises(NotFoundError, match="Expedition"):
            env.expeditions.simulate_tick("exp_missing", 10)


class TestComplete:
    def test_idempotent(self, env, player):
        pid = player.player_id
        seen = _record(env.bus, EventTypes.EXPEDITION_COMPLETED)
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])
        env.expeditions.simulate_tick(exp.expedition_id, 10)

        first = env.expeditions.complete_expedition(exp.expedition_id)
        after_first = env.players.get_player(pid)
        second = env.expeditions.complete_expedition(exp.expedition_id)

        assert first.status == ExpeditionStatus.COMPLETED
        assert second.status == ExpeditionStatus.COMPLETED
        assert second.experience_gained == first.experience_gained == 1
        assert env.players.get_player(pid).experience == after_first.experience == 1
        assert _totals(env, pid) == {"res_fibra": 1}
        assert len(seen) == 1
        assert first.expires_at is not None

    def test_three_veado(self, env, player):
        pid = player.player_id
        _arm(env, pid)
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_veado"])
        env.inventory.add_to_inventory(pid, "res_veado", 3)
        stored = env.repository.get(exp.expedition_id)
        stored.collected_resources = {"res_veado": 3}
        stored.granted_resources = {"res_veado": 3}
        env.repository.save(stored)
        env.db.commit()

        done = env.expeditions.complete_expedition(exp.expedition_id)

        assert done.collected_resources == {
            "res_carne": 9,
            "res_couro": 6,
            "res_ossos": 12,
            "res_pelo": 3,
        }
        assert done.experience_gained == 81
        assert done.coins_gained == 22
        state = env.players.get_player(pid)
        assert state.experience == 81
        assert state.coins == 22
        assert _totals(env, pid) == {
            "res_veado": 3,
            "res_carne": 9,
            "res_couro": 6,
            "res_ossos": 12,
            "res_pelo": 3,
        }
        assert state.inventory_weight <= state.max_inventory_weight

    @pytest.mark.parametrize("seed", [1, 7, 42])
    def test_urso_yield_regardless_of_seed(self, env_factory, seed):
        env = env_factory(rng=random.Random(seed))
        pid = env.players.register_player(f"hunter{seed}").player_id
        _arm(env, pid)
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_urso"])
        for _ in range(50):
            if env.expeditions.simulate_tick(exp.expedition_id, 60).resource_collected:
                break
        done = env.expeditions.complete_expedition(exp.expedition_id)
        assert done.collected_resources == URSO_PARTS

    def test_collected_events(self, env, player):
        pid = player.player_id
        seen = _record(env.bus, EventTypes.RESOURCE_COLLECTED)
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])
        env.expeditions.simulate_tick(exp.expedition_id, 10)
        env.expeditions.simulate_tick(exp.expedition_id, 10)
        env.expeditions.complete_expedition(exp.expedition_id)
        assert [(e.data["resource_id"], e.data["quantity"]) for e in seen] == [
            ("res_fibra", 2)
        ]

    def test_auto_storage_setting(self, env, player):
        pid = player.player_id
        env.players.update_settings(pid, auto_storage=True)
        _arm(env, pid)
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_coelho"])
        env.inventory.add_to_inventory(pid, "res_coelho", 1)
        stored = env.repository.get(exp.expedition_id)
        stored.collected_resources = {"res_coelho": 1}
        stored.granted_resources = {"res_coelho": 1}
        env.repository.save(stored)
        env.db.commit()

        env.expeditions.complete_expedition(exp.expedition_id)

        assert env.inventory.quantities(pid, ItemLocation.INVENTORY) == {"res_coelho": 1}
        assert env.inventory.quantities(pid, ItemLocation.STORAGE)

    def test_weight_invariant(self, env, player):
        pid = player.player_id
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])
        for _ in range(5):
            env.expeditions.simulate_tick(exp.expedition_id, 10)
        env.inventory.move_to_storage(pid, "res_fibra", 2)
        env.inventory.add_to_inventory(pid, "res_carne", 2)
        env.players.consume_item(pid, "res_carne")
        env.expeditions.complete_expedition(exp.expedition_id)

        expected = calculate_weight(
            env.inventory.quantities(pid, ItemLocation.INVENTORY).items(), env.catalog
        )
        assert env.players.get_player(pid).inventory_weight == pytest.approx(expected)


class TestCancel:
    def test_cancel_keeps_granted_items(self, env, player):
        pid = player.player_id
        seen = _record(env.bus, EventTypes.EXPEDITION_CANCELLED)
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])
        env.expeditions.simulate_tick(exp.expedition_id, 10)

        cancelled = env.expeditions.cancel_expedition(exp.expedition_id)

        assert cancelled.status == ExpeditionStatus.CANCELLED
        assert cancelled.experience_gained == 0
        assert _totals(env, pid) == {"res_fibra": 1}
        assert env.players.get_player(pid).experience == 0
        assert len(seen) == 1

    def test_finished_cannot_change(self, env, player):
        exp = env.expeditions.start_expedition(
            player.player_id, "bio_floresta", ["res_fibra"]
        )
        env.expeditions.cancel_expedition(exp.expedition_id)
        with pytest.raises(InvalidOperationError, match="cancelled"):
            env.expeditions.complete_expedition(exp.expedition_id)
        with pytest.raises(InvalidOperationError, match="already finished"):
            env.expeditions.cancel_expedition(exp.expedition_id)
        with pytest.raises(InvalidOperationError, match="not active"):
            env.expeditions.simulate_tick(exp.expedition_id, 10)


class TestRetention:
    def test_purge_after_retention(self, env, player):
        exp = env.expeditions.start_expedition(
            player.player_id, "bio_floresta", ["res_fibra"]
        )
        env.expeditions.complete_expedition(exp.expedition_id)
        env.clock.advance(299)
        assert env.expeditions.purge_expired() == 0
        env.clock.advance(2)
        assert env.expeditions.purge_expired() == 1
        with pytest.raises(NotFoundError):
            env.expeditions.get_expedition(exp.expedition_id)

    def test_purged_lazily_on_start(self, env, player):
        pid = player.player_id
        first = env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])
        env.expeditions.cancel_expedition(first.expedition_id)
        env.clock.advance(600)
        env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])
        with pytest.raises(NotFoundError):
            env.expeditions.get_expedition(first.expedition_id)


class TestMemoryRepository:
    def test_full_cycle(self, env_factory):
        env = env_factory(repository=InMemoryExpeditionRepository())
        pid = env.players.register_player("memo").player_id
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])
        env.expeditions.simulate_tick(exp.expedition_id, 10)
        assert env.repository.get(exp.expedition_id).collected_resources == {
            "res_fibra": 1
        }
        done = env.expeditions.complete_expedition(exp.expedition_id)
        assert done.status == ExpeditionStatus.COMPLETED
        assert env.repository.find_active(pid) is None

    def test_returns_copies(self):
        repo = InMemoryExpeditionRepository()
        repo.create(Expedition("exp_1", "p1", "bio_floresta", ["res_fibra"]))
        loaded = repo.get("exp_1")
        loaded.collected_resources["res_fibra"] = 9
        assert repo.get("exp_1").collected_resources == {}


class TestFailureRecovery:
    """저장 실패 시 원정은 active로 남고 다음 요청으로 재시도 가능"""

    @pytest.fixture(params=["sql", "memory"])
    def store_env(self, request, env_factory):
        if request.param == "memory":
            return env_factory(repository=InMemoryExpeditionRepository())
        return env_factory()

    @staticmethod
    def _fail_once(monkeypatch, target, name):
        original = getattr(target, name)
        state = {"failed": False}

        def flaky(*args, **kwargs):
            if not state["failed"]:
                state["failed"] = True
                raise RuntimeError("disk I/O error")
            return original(*args, **kwargs)

        monkeypatch.setattr(target, name, flaky)

    def test_tick_commit_failure(self, store_env, monkeypatch):
        env = store_env
        pid = env.players.register_player("retry").player_id
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])

        self._fail_once(monkeypatch, env.db, "commit")
        with pytest.raises(RuntimeError):
            env.expeditions.simulate_tick(exp.expedition_id, 10)

        stored = env.expeditions.get_expedition(exp.expedition_id)
        assert stored.status == ExpeditionStatus.ACTIVE
        assert stored.collected_resources == {}
        assert stored.granted_resources == {}
        assert _totals(env, pid) == {}

        result = env.expeditions.simulate_tick(exp.expedition_id, 10)
        assert result.resource_collected == "res_fibra"
        assert env.expeditions.get_expedition(exp.expedition_id).collected_resources == {
            "res_fibra": 1
        }
        assert _totals(env, pid) == {"res_fibra": 1}

    def test_tick_storage_failure(self, store_env, monkeypatch):
        env = store_env
        pid = env.players.register_player("retry").player_id
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])

        self._fail_once(monkeypatch, env.inventory, "stage_add")
        with pytest.raises(RuntimeError):
            env.expeditions.simulate_tick(exp.expedition_id, 10)

        stored = env.expeditions.get_expedition(exp.expedition_id)
        assert stored.status == ExpeditionStatus.ACTIVE
        assert stored.collected_resources == {}
        assert _totals(env, pid) == {}

        env.expeditions.simulate_tick(exp.expedition_id, 10)
        assert _totals(env, pid) == {"res_fibra": 1}
        assert env.players.get_player(pid).inventory_weight == 1

    def test_complete_commit_failure_pays_on_retry(self, store_env, monkeypatch):
        env = store_env
        pid = env.players.register_player("retry").player_id
        exp = env.expeditions.start_expedition(pid, "bio_floresta", ["res_fibra"])
        env.expeditions.simulate_tick(exp.expedition_id, 10)

        self._fail_once(monkeypatch, env.db, "commit")
        with pytest.raises(RuntimeError):
            env.expeditions.complete_expedition(exp.expedition_id)

        assert env.expeditions.get_expedition(exp.expedition_id).is_active
        assert env.players.get_player(pid).experience == 0

        done = env.expeditions.complete_expedition(exp.expedition_id)
        assert done.status == ExpeditionStatus.COMPLETED
        assert done.experience_gained == 1
        assert env.players.get_player(pid).experience == 1
        assert _totals(env, pid) == {"res_fibra": 1}


class TestBiomeResources:
    def test_collectable_depends_on_equipment(self, env, player):
        pid = player.player_id
        rows = {
            r["resource"].resource_id: r
            for r in env.expeditions.list_biome_resources(pid, "bio_floresta")
        }
        assert rows["res_fibra"]["collectable"]
        assert not rows["res_madeira"]["collectable"]
        assert rows["res_madeira"]["required_tool"] == "axe"

        env.inventory.add_to_inventory(pid, "eq_machado", 1)
        env.players.equip_item(pid, "eq_machado")
        rows = {
            r["resource"].resource_id: r
            for r in env.expeditions.list_biome_resources(pid, "bio_floresta")
        }
        assert rows["res_madeira"]["collectable"]

    def test_unknown_biome(self, env, player):
        with pytest.raises(NotFoundError):
            env.expeditions.list_biome_resources(player.player_id, "bio_nope")
