"""CatalogRegistry 테스트 (실제 JSON)"""

import json

from wildcamp.core.catalog import (
    Biome,
    CatalogRegistry,
    ItemType,
    ObjectiveType,
    ResourceCategory,
    ToolType,
)


class TestLoad:
    def test_all_files_loaded(self, catalog):
        assert len(catalog.all_resources()) > 40
        assert len(catalog.all_equipment()) >= 10
        assert len(catalog.all_recipes()) >= 10
        assert {b.biome_id for b in catalog.all_biomes()} >= {
            "bio_floresta",
            "bio_rio",
            "bio_montanha",
            "bio_costa",
        }
        assert len(catalog.all_quests()) >= 10

    def test_resource_fields(self, catalog):
        veado = catalog.get_resource("res_veado")
        assert veado.category == ResourceCategory.ANIMAL
        assert veado.required_tool == ToolType.WEAPON_AND_KNIFE
        assert veado.weight == 8
        assert veado.experience_per_unit == 8

    def test_consumables(self, catalog):
        assert catalog.get_resource("res_agua_fresca").is_consumable
        assert catalog.get_resource("res_carne").hunger_restore == 5
        assert not catalog.get_resource("res_couro").is_consumable

    def test_quest_objectives(self, catalog):
        quest = catalog.get_quest("q_primeiro_passo")
        keys = [o.key for o in quest.objectives]
        assert keys == ["collect_res_fibra", "collect_res_pedras_soltas"]
        level_quest = catalog.get_quest("q_sobrevivente")
        assert level_quest.objectives[0].objective_type == ObjectiveType.LEVEL
        assert level_quest.objectives[0].key == "level"

    def test_invalid_entry_skipped(self, tmp_path):
        for name in ("equipment", "recipes", "biomes", "quests"):
            (tmp_path / f"{name}.json").write_text("[]", encoding="utf-8")
        (tmp_path / "animal_yields.json").write_text("{}", encoding="utf-8")
        (tmp_path / "resources.json").write_text(
            json.dumps(
                [
                    {"resource_id": "res_ok", "name": "Ok", "category": "basic",
                     "weight": 1, "value": 2},
                    {"resource_id": "res_bad", "name": "Bad", "category": "lava",
                     "weight": 1, "value": 2},
                ]
            ),
            encoding="utf-8",
        )
        registry = CatalogRegistry()
        count = registry.load(tmp_path)
        assert count == 1
        assert registry.get_resource("res_ok") is not None
        assert registry.get_resource("res_bad") is None


class TestLookup:
    def test_unknown_returns_none(self, catalog):
        assert catalog.get_resource("res_nope") is None
        assert catalog.get_biome("bio_nope") is None
        assert catalog.get_quest("q_nope") is None

    def test_resources_for_biome(self, catalog):
        ids = {r.resource_id for r in catalog.resources_for_biome("bio_floresta")}
        assert {"res_fibra", "res_veado", "res_urso"} <= ids
        assert catalog.resources_for_biome("bio_nope") == []

    def test_animal_yield_copy(self, catalog):
        parts = catalog.animal_yield("res_urso")
        assert parts == {
            "res_carne": 8,
            "res_couro": 4,
            "res_ossos": 8,
            "res_pelo": 3,
            "res_banha": 3,
        }
        parts["res_carne"] = 0
        assert catalog.animal_yield("res_urso")["res_carne"] == 8
        assert catalog.animal_yield("res_fibra") is None

    def test_item_type_and_weight(self, catalog):
        assert catalog.item_type_of("eq_machado") == ItemType.EQUIPMENT
        assert catalog.item_type_of("res_fibra") == ItemType.RESOURCE
        assert catalog.item_type_of("zzz") is None
        assert catalog.item_weight("eq_machado") == 4
        assert catalog.item_weight("zzz") == 0.0

    def test_register_biome(self):
        registry = CatalogRegistry()
        registry.register_biome(
            Biome(biome_id="bio_x", name="X", required_level=1, resource_ids=())
        )
        assert registry.get_biome("bio_x").name == "X"
        assert len(registry) == 1
