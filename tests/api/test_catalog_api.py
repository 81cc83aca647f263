"""카탈로그 API 테스트"""

from wildcamp.core.cache import CacheScope


class TestCatalogLists:
    def test_resources(self, client, catalog):
        data = client.get("/api/catalog/resources").json()
        assert len(data) == len(catalog.all_resources())
        veado = next(r for r in data if r["resource_id"] == "res_veado")
        assert veado["experience"] == 8
        assert veado["required_tool"] == "weapon_and_knife"

    def test_cached(self, client, app):
        first = client.get("/api/catalog/recipes").json()
        assert app.state.cache.get(CacheScope.CATALOG, "recipes") is not None
        assert client.get("/api/catalog/recipes").json() == first

    def test_equipment(self, client):
        data = client.get("/api/catalog/equipment").json()
        machado = next(e for e in data if e["equipment_id"] == "eq_machado")
        assert machado["slot"] == "tool"
        assert machado["tool_type"] == "axe"

    def test_biomes(self, client):
        ids = [b["biome_id"] for b in client.get("/api/catalog/biomes").json()]
        assert "bio_floresta" in ids

    def test_quests(self, client):
        data = client.get("/api/catalog/quests").json()
        passo = next(q for q in data if q["quest_id"] == "q_primeiro_passo")
        assert passo["rewards"] == {"experience": 15, "coins": 30, "items": {}}
        assert passo["objectives"][0] == {
            "type": "collect",
            "target": "res_fibra",
            "quantity": 5,
            "description": "Colete 5 Fibras",
        }


class TestBiomeResources:
    def test_without_player(self, client):
        data = client.get("/api/catalog/biomes/bio_floresta/resources").json()
        rows = {row["resource"]["resource_id"]: row for row in data}
        assert rows["res_fibra"]["collectable"] is True
        assert rows["res_madeira"]["collectable"] is False
        assert rows["res_veado"]["distance_from_camp"] == 40

    def test_with_equipped_player(self, client, app):
        pid = client.post("/api/players", json={"username": "lenhador"}).json()["player_id"]
        app.state.inventory_service.add_to_inventory(pid, "eq_machado", 1)
        client.post(f"/api/players/{pid}/equip", json={"equipment_id": "eq_machado"})
        data = client.get(
            "/api/catalog/biomes/bio_floresta/resources", params={"player_id": pid}
        ).json()
        rows = {row["resource"]["resource_id"]: row for row in data}
        assert rows["res_madeira"]["collectable"] is True

    def test_unknown_biome(self, client):
        response = client.get("/api/catalog/biomes/bio_nope/resources")
        assert response.status_code == 404
