"""Shared test fixtures."""

import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event as sa_event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wildcamp.api.catalog import router as catalog_router
from wildcamp.api.errors import register_exception_handlers
from wildcamp.api.expeditions import router as expeditions_router
from wildcamp.api.health import router as health_router
from wildcamp.api.players import router as players_router
from wildcamp.config import PACKAGE_DIR
from wildcamp.core.cache import TTLCache
from wildcamp.core.catalog.registry import CatalogRegistry
from wildcamp.core.event_bus import EventBus
from wildcamp.core.expedition.rules import ExpeditionRules
from wildcamp.core.locks import PlayerLocks
from wildcamp.db.database import get_db
from wildcamp.db.models import Base
from wildcamp.main import init_services
from wildcamp.services.crafting_service import CraftingService
from wildcamp.services.expedition_repository import (
    ExpeditionRepository,
    SqlExpeditionRepository,
)
from wildcamp.services.expedition_service import ExpeditionService
from wildcamp.services.inventory_service import InventoryService
from wildcamp.services.player_service import PlayerService
from wildcamp.services.quest_service import QuestService

DATA_DIR = PACKAGE_DIR / "data"


class AlwaysSucceed(random.Random):
    """채집 판정 항상 성공, 후보 중 첫 번째 선택"""

    def random(self) -> float:
        return 0.0

    def choice(self, seq):
        return seq[0]


class AlwaysFail(random.Random):
    """채집 판정 항상 실패"""

    def random(self) -> float:
        return 0.99

    def choice(self, seq):
        return seq[0]


class FakeClock:
    """고정 시각. advance()로만 이동"""

    def __init__(self, now: Optional[datetime] = None) -> None:
        self.now = now or datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@dataclass
class ServiceEnv:
    db: Session
    catalog: CatalogRegistry
    cache: TTLCache
    locks: PlayerLocks
    bus: EventBus
    clock: FakeClock
    repository: ExpeditionRepository
    inventory: InventoryService
    players: PlayerService
    expeditions: ExpeditionService
    quests: QuestService
    crafting: CraftingService


def make_engine():
    """인메모리 SQLite (FK 활성화)"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @sa_event.listens_for(engine, "connect")
    def _set_fk(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    return engine


def build_env(
    db: Session,
    catalog: CatalogRegistry,
    repository: Optional[ExpeditionRepository] = None,
    rng: Optional[random.Random] = None,
    rules: Optional[ExpeditionRules] = None,
) -> ServiceEnv:
    cache = TTLCache()
    locks = PlayerLocks()
    bus = EventBus()
    clock = FakeClock()
    repository = repository or SqlExpeditionRepository(db)
    inventory = InventoryService(db, catalog, cache, locks)
    players = PlayerService(
        db, catalog, cache, locks, inventory, expeditions=repository, clock=clock
    )
    expeditions = ExpeditionService(
        db,
        catalog,
        cache,
        locks,
        bus,
        repository,
        players,
        inventory,
        rules=rules,
        rng=rng or AlwaysSucceed(),
        clock=clock,
    )
    quests = QuestService(db, catalog, cache, locks, bus, players, inventory, clock=clock)
    crafting = CraftingService(db, catalog, cache, locks, bus, players, inventory)
    return ServiceEnv(
        db=db,
        catalog=catalog,
        cache=cache,
        locks=locks,
        bus=bus,
        clock=clock,
        repository=repository,
        inventory=inventory,
        players=players,
        expeditions=expeditions,
        quests=quests,
        crafting=crafting,
    )


@pytest.fixture(scope="session")
def catalog() -> CatalogRegistry:
    """실제 카탈로그 JSON"""
    registry = CatalogRegistry()
    registry.load(DATA_DIR)
    return registry


@pytest.fixture()
def db_session():
    """Raw database session for direct DB assertions."""
    engine = make_engine()
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def env(db_session, catalog) -> ServiceEnv:
    """인메모리 DB + EventBus + 전체 서비스 (채집 항상 성공)"""
    return build_env(db_session, catalog)


@pytest.fixture()
def player(env):
    """기본값 플레이어 1명"""
    return env.players.register_player("tester")


@pytest.fixture()
def env_factory(db_session, catalog):
    """저장소/난수/규칙을 바꿔 서비스 묶음 생성"""

    def _build(**kwargs) -> ServiceEnv:
        return build_env(db_session, catalog, **kwargs)

    return _build


@pytest.fixture()
def failing_rng() -> random.Random:
    return AlwaysFail()


def build_app(db: Session, catalog: CatalogRegistry) -> FastAPI:
    """lifespan 없이 라우터 + 서비스만 연결한 앱"""
    app = FastAPI()
    register_exception_handlers(app)
    for router in (health_router, players_router, expeditions_router, catalog_router):
        app.include_router(router)
    init_services(app, db, catalog, rng=AlwaysSucceed())
    app.dependency_overrides[get_db] = lambda: db
    return app


@pytest.fixture()
def app(db_session, catalog) -> FastAPI:
    return build_app(db_session, catalog)


@pytest.fixture()
def client(app):
    """TestClient + 인메모리 환경 (채집 항상 성공)"""
    with TestClient(app) as test_client:
        yield test_client
