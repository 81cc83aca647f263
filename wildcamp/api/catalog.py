"""Catalog API endpoints (읽기 전용, CATALOG 캐시)"""

from typing import Optional

from fastapi import APIRouter, Depends

from wildcamp.api.builders import (
    build_biome,
    build_biome_resource,
    build_equipment,
    build_quest,
    build_recipe,
    build_resource,
)
from wildcamp.api.deps import get_cache, get_catalog, get_expedition_service
from wildcamp.api.schemas import (
    BiomeInfo,
    BiomeResourceInfo,
    EquipmentInfo,
    ErrorResponse,
    QuestInfo,
    RecipeInfo,
    ResourceInfo,
)
from wildcamp.core.cache import CacheScope, TTLCache
from wildcamp.core.catalog.registry import CatalogRegistry
from wildcamp.core.errors import NotFoundError
from wildcamp.services.expedition_service import ExpeditionService

router = APIRouter(
    prefix="/api/catalog",
    tags=["catalog"],
    responses={404: {"model": ErrorResponse}},
)


@router.get("/resources", response_model=list[ResourceInfo])
def list_resources(
    catalog: CatalogRegistry = Depends(get_catalog),
    cache: TTLCache = Depends(get_cache),
) -> list[ResourceInfo]:
    return cache.get_or_set(
        CacheScope.CATALOG,
        "resources",
        lambda: [build_resource(r) for r in catalog.all_resources()],
    )


@router.get("/equipment", response_model=list[EquipmentInfo])
def list_equipment(
    catalog: CatalogRegistry = Depends(get_catalog),
    cache: TTLCache = Depends(get_cache),
) -> list[EquipmentInfo]:
    return cache.get_or_set(
        CacheScope.CATALOG,
        "equipment",
        lambda: [build_equipment(e) for e in catalog.all_equipment()],
    )


@router.get("/recipes", response_model=list[RecipeInfo])
def list_recipes(
    catalog: CatalogRegistry = Depends(get_catalog),
    cache: TTLCache = Depends(get_cache),
) -> list[RecipeInfo]:
    return cache.get_or_set(
        CacheScope.CATALOG,
        "recipes",
        lambda: [build_recipe(r) for r in catalog.all_recipes()],
    )


@router.get("/biomes", response_model=list[BiomeInfo])
def list_biomes(
    catalog: CatalogRegistry = Depends(get_catalog),
    cache: TTLCache = Depends(get_cache),
) -> list[BiomeInfo]:
    return cache.get_or_set(
        CacheScope.CATALOG,
        "biomes",
        lambda: [build_biome(b) for b in catalog.all_biomes()],
    )


@router.get("/quests", response_model=list[QuestInfo])
def list_quests(
    catalog: CatalogRegistry = Depends(get_catalog),
    cache: TTLCache = Depends(get_cache),
) -> list[QuestInfo]:
    return cache.get_or_set(
        CacheScope.CATALOG,
        "quests",
        lambda: [build_quest(q) for q in catalog.all_quests()],
    )


@router.get("/biomes/{biome_id}/resources", response_model=list[BiomeResourceInfo])
def list_biome_resources(
    biome_id: str,
    player_id: Optional[str] = None,
    catalog: CatalogRegistry = Depends(get_catalog),
    expeditions: ExpeditionService = Depends(get_expedition_service),
) -> list[BiomeResourceInfo]:
    """
    바이옴 자원 목록

    player_id가 있으면 현재 장비 기준 채집 가능 여부를 표시한다.
    없으면 도구가 필요 없는 자원만 collectable.
    """
    if player_id is not None:
        entries = expeditions.list_biome_resources(player_id, biome_id)
        return [build_biome_resource(entry) for entry in entries]

    if catalog.get_biome(biome_id) is None:
        raise NotFoundError("Biome")
    return [
        BiomeResourceInfo(
            resource=build_resource(resource),
            distance_from_camp=resource.distance_from_camp,
            required_tool=resource.required_tool.value,
            collectable=resource.required_tool.value == "none",
        )
        for resource in catalog.resources_for_biome(biome_id)
    ]
