"""플레이어 Core 테스트 - 레벨, 허기/갈증, 무게, 도구"""

import pytest

from wildcamp.core.player import (
    LevelCurve,
    PassiveVitals,
    PlayerState,
    apply_experience,
    calculate_level,
    calculate_weight,
    can_carry,
    coin_reward_for,
    decay_vitals,
    experience_for,
    has_required_tool,
    restore_vitals,
    vitals_low,
)


def _player(**kwargs) -> PlayerState:
    return PlayerState(player_id="p1", username="tester", **kwargs)


class TestLevelCurve:
    def test_thresholds(self):
        curve = LevelCurve()
        assert [curve.threshold(n) for n in range(1, 6)] == [0, 100, 200, 350, 550]

    @pytest.mark.parametrize(
        "exp,level",
        [(0, 1), (99, 1), (100, 2), (199, 2), (200, 3), (349, 3), (350, 4), (550, 5)],
    )
    def test_calculate_level(self, exp, level):
        assert calculate_level(exp) == level

    def test_negative_experience_is_level_one(self):
        assert calculate_level(-10) == 1

    def test_custom_curve(self):
        curve = LevelCurve(base=10, step=10)
        assert curve.threshold(3) == 30
        assert calculate_level(30, curve) == 3


class TestApplyExperience:
    def test_level_up(self):
        player = _player(experience=90)
        result = apply_experience(player, 120)
        assert player.experience == 210
        assert player.level == 3
        assert result.leveled_up
        assert result.previous_level == 1

    def test_no_level_up(self):
        player = _player()
        result = apply_experience(player, 81)
        assert player.level == 1
        assert not result.leveled_up


class TestRewards:
    def test_experience_and_coins_from_processed_veado(self, catalog):
        processed = {"res_carne": 9, "res_couro": 6, "res_ossos": 12, "res_pelo": 3}
        assert experience_for(processed, catalog) == 81
        assert coin_reward_for(processed, catalog) == 22

    def test_unknown_resource_skipped(self, catalog):
        assert experience_for({"res_unknown": 5}, catalog) == 0

    def test_coins_floor(self, catalog):
        assert coin_reward_for({"res_fibra": 4}, catalog) == 0
        assert coin_reward_for({"res_fibra": 5}, catalog) == 1


class TestVitals:
    def test_restore_clamped(self):
        player = _player(hunger=95.0, thirst=50.0)
        restore_vitals(player, hunger=10, thirst=15)
        assert player.hunger == 100.0
        assert player.thirst == 65.0

    def test_decay_not_below_zero(self):
        player = _player(hunger=0.2, thirst=0.5)
        decay_vitals(player, 0.5)
        assert player.hunger == 0.0
        assert player.thirst == 0.0

    def test_vitals_low_inclusive(self):
        assert vitals_low(10, 100, 0.1)
        assert vitals_low(9, 100, 0.1)
        assert not vitals_low(10.5, 100, 0.1)


class TestPassiveVitals:
    def test_whole_intervals_only(self):
        passive = PassiveVitals(interval_seconds=120)
        assert passive.intervals(119) == 0
        assert passive.intervals(120) == 1
        assert passive.intervals(359) == 2
        assert passive.intervals(-30) == 0

    def test_degrade_per_interval(self):
        player = _player(hunger=50.0, thirst=50.0)
        PassiveVitals(hunger_decay=3, thirst_decay=4).degrade(player, 2)
        assert player.hunger == 44.0
        assert player.thirst == 42.0

    def test_degrade_clamped(self):
        player = _player(hunger=5.0, thirst=5.0)
        PassiveVitals().degrade(player, 10)
        assert player.hunger == 0.0
        assert player.thirst == 0.0

    def test_auto_consume_threshold_inclusive(self):
        passive = PassiveVitals(auto_consume_ratio=0.15)
        assert passive.hungry(_player(hunger=15.0))
        assert not passive.hungry(_player(hunger=15.5))
        assert passive.thirsty(_player(thirst=3.0))
        assert not passive.thirsty(_player(thirst=80.0))


class TestWeight:
    def test_calculate_weight(self, catalog):
        rows = [("res_carne", 3), ("eq_machado", 1), ("res_unknown", 5)]
        assert calculate_weight(rows, catalog) == pytest.approx(2.3 * 3 + 4)

    def test_can_carry_boundary(self):
        assert can_carry(45.0, 5.0, 50.0)
        assert not can_carry(45.0, 5.1, 50.0)


class TestTools:
    def test_no_tool_required(self, catalog):
        assert has_required_tool(_player(), catalog.get_resource("res_fibra"), catalog)

    def test_axe_in_tool_slot(self, catalog):
        player = _player()
        madeira = catalog.get_resource("res_madeira")
        assert not has_required_tool(player, madeira, catalog)
        player.equipped["tool"] = "eq_machado"
        assert has_required_tool(player, madeira, catalog)

    def test_weapon_and_knife(self, catalog):
        veado = catalog.get_resource("res_veado")
        player = _player()
        player.equipped["weapon"] = "eq_lanca"
        assert not has_required_tool(player, veado, catalog)
        player.equipped["tool"] = "eq_faca"
        assert has_required_tool(player, veado, catalog)

    def test_knife_alone_is_not_enough_for_big_game(self, catalog):
        player = _player()
        player.equipped["tool"] = "eq_faca"
        assert not has_required_tool(player, catalog.get_resource("res_veado"), catalog)
        assert has_required_tool(player, catalog.get_resource("res_coelho"), catalog)
