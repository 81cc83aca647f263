"""FastAPI application entrypoint."""

import random
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI

from wildcamp.api.catalog import router as catalog_router
from wildcamp.api.errors import register_exception_handlers
from wildcamp.api.expeditions import router as expeditions_router
from wildcamp.api.health import router as health_router
from wildcamp.api.players import router as players_router
from wildcamp.config import settings
from wildcamp.core.cache import TTLCache
from wildcamp.core.catalog.registry import CatalogRegistry
from wildcamp.core.event_bus import EventBus
from wildcamp.core.expedition.rules import ExpeditionRules
from wildcamp.core.locks import PlayerLocks
from wildcamp.core.logging import get_logger, setup_logging
from wildcamp.core.player.progression import LevelCurve
from wildcamp.core.player.vitals import PassiveVitals
from wildcamp.db.database import ScopedSession, engine as db_engine
from wildcamp.db.models import Base
from wildcamp.services.crafting_service import CraftingService
from wildcamp.services.expedition_repository import get_expedition_repository
from wildcamp.services.expedition_service import ExpeditionService
from wildcamp.services.inventory_service import InventoryService
from wildcamp.services.player_service import PlayerService
from wildcamp.services.quest_service import QuestService

setup_logging(settings.LOG_LEVEL, settings.DEBUG)
logger = get_logger(__name__)


def init_services(
    app: FastAPI,
    db,
    catalog: CatalogRegistry,
    rng: Optional[random.Random] = None,
) -> None:
    """서비스 생성 후 app.state에 등록 (테스트에서도 사용)"""
    cache = TTLCache(
        player_ttl=settings.PLAYER_CACHE_TTL_SECONDS,
        catalog_ttl=settings.CATALOG_CACHE_TTL_SECONDS,
    )
    locks = PlayerLocks()
    event_bus = EventBus()
    curve = LevelCurve(
        base=settings.BASE_LEVEL_EXPERIENCE, step=settings.LEVEL_EXPERIENCE_STEP
    )
    repository = get_expedition_repository(db)
    logger.info("Expedition store: %s", repository.name)

    inventory = InventoryService(db, catalog, cache, locks)
    players = PlayerService(
        db,
        catalog,
        cache,
        locks,
        inventory,
        expeditions=repository,
        max_hunger=settings.DEFAULT_MAX_HUNGER,
        max_thirst=settings.DEFAULT_MAX_THIRST,
        max_inventory_weight=settings.DEFAULT_MAX_INVENTORY_WEIGHT,
        passive=PassiveVitals.from_settings(settings),
    )
    expeditions = ExpeditionService(
        db,
        catalog,
        cache,
        locks,
        event_bus,
        repository,
        players,
        inventory,
        rules=ExpeditionRules.from_settings(settings),
        curve=curve,
        rng=rng,
    )
    quests = QuestService(
        db,
        catalog,
        cache,
        locks,
        event_bus,
        players,
        inventory,
        max_active_quests=settings.MAX_ACTIVE_QUESTS,
        curve=curve,
    )
    crafting = CraftingService(db, catalog, cache, locks, event_bus, players, inventory)

    app.state.catalog = catalog
    app.state.cache = cache
    app.state.event_bus = event_bus
    app.state.inventory_service = inventory
    app.state.player_service = players
    app.state.expedition_service = expeditions
    app.state.quest_service = quests
    app.state.crafting_service = crafting
    logger.info("Services initialized (%d event handlers).", event_bus.handler_count)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    # DB 테이블 생성
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=db_engine)
    logger.info("Database tables created.")

    # 카탈로그 로드
    catalog = CatalogRegistry()
    catalog.load(settings.DATA_DIR)

    init_services(app, ScopedSession, catalog)

    yield

    # 종료 시 정리
    logger.info("Shutting down...")
    ScopedSession.remove()


app = FastAPI(title="Wildcamp", lifespan=lifespan)
register_exception_handlers(app)

app.include_router(health_router)
app.include_router(players_router)
app.include_router(expeditions_router)
app.include_router(catalog_router)
