"""app.state 서비스 의존성 주입"""

from fastapi import Request

from wildcamp.core.cache import TTLCache
from wildcamp.core.catalog.registry import CatalogRegistry
from wildcamp.services.crafting_service import CraftingService
from wildcamp.services.expedition_service import ExpeditionService
from wildcamp.services.inventory_service import InventoryService
from wildcamp.services.player_service import PlayerService
from wildcamp.services.quest_service import QuestService


def get_catalog(request: Request) -> CatalogRegistry:
    """CatalogRegistry 인스턴스 반환 (의존성 주입)"""
    catalog: CatalogRegistry = request.app.state.catalog
    return catalog


def get_cache(request: Request) -> TTLCache:
    cache: TTLCache = request.app.state.cache
    return cache


def get_player_service(request: Request) -> PlayerService:
    """PlayerService 인스턴스 반환 (의존성 주입)"""
    service: PlayerService = request.app.state.player_service
    return service


def get_inventory_service(request: Request) -> InventoryService:
    """InventoryService 인스턴스 반환 (의존성 주입)"""
    service: InventoryService = request.app.state.inventory_service
    return service


def get_expedition_service(request: Request) -> ExpeditionService:
    """ExpeditionService 인스턴스 반환 (의존성 주입)"""
    service: ExpeditionService = request.app.state.expedition_service
    return service


def get_quest_service(request: Request) -> QuestService:
    """QuestService 인스턴스 반환 (의존성 주입)"""
    service: QuestService = request.app.state.quest_service
    return service


def get_crafting_service(request: Request) -> CraftingService:
    """CraftingService 인스턴스 반환 (의존성 주입)"""
    service: CraftingService = request.app.state.crafting_service
    return service
