"""원정 저장소 - 추상 인터페이스 + SQL / 인메모리 구현

EXPEDITION_STORE 설정으로 구현 선택 (get_expedition_repository).
SQL 구현은 flush만 한다. 커밋은 서비스가 한다.
"""

import copy
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from wildcamp.config import settings
from wildcamp.core.expedition.models import (
    Expedition,
    ExpeditionStatus,
    ReturnReason,
)
from wildcamp.core.logging import get_logger
from wildcamp.db.models import ExpeditionModel

logger = get_logger(__name__)


class ExpeditionRepository(ABC):
    """Abstract base class for expedition stores."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the store name."""
        ...

    @property
    def transactional(self) -> bool:
        """True면 쓰기가 DB 세션 트랜잭션에 포함된다 (롤백 시 함께 취소)"""
        return False

    @abstractmethod
    def create(self, expedition: Expedition) -> Expedition:
        ...

    @abstractmethod
    def get(self, expedition_id: str) -> Optional[Expedition]:
        ...

    @abstractmethod
    def save(self, expedition: Expedition) -> Expedition:
        ...

    @abstractmethod
    def delete(self, expedition_id: str) -> None:
        ...

    @abstractmethod
    def find_active(self, player_id: str) -> Optional[Expedition]:
        """플레이어의 active 원정 (최대 1개)"""
        ...

    @abstractmethod
    def find_expired(self, now: datetime) -> list[str]:
        """expires_at ≤ now 인 종료 원정 id"""
        ...

    @abstractmethod
    def delete_for_player(self, player_id: str) -> int:
        ...


def expedition_to_core(orm: ExpeditionModel) -> Expedition:
    """ORM → Core"""
    return Expedition(
        expedition_id=orm.expedition_id,
        player_id=orm.player_id,
        biome_id=orm.biome_id,
        selected_resources=list(orm.selected_resources or []),
        status=ExpeditionStatus(orm.status),
        collected_resources=dict(orm.collected_resources or {}),
        granted_resources=dict(orm.granted_resources or {}),
        current_distance=orm.current_distance,
        return_reason=ReturnReason(orm.return_reason) if orm.return_reason else None,
        experience_gained=orm.experience_gained,
        coins_gained=orm.coins_gained,
        start_time=orm.start_time,
        end_time=orm.end_time,
        expires_at=orm.expires_at,
    )


def _write_to_orm(core: Expedition, orm: ExpeditionModel) -> None:
    """Core → ORM. JSON 컬럼은 새 객체로 교체."""
    orm.player_id = core.player_id
    orm.biome_id = core.biome_id
    orm.status = core.status.value
    orm.selected_resources = list(core.selected_resources)
    orm.collected_resources = dict(core.collected_resources)
    orm.granted_resources = dict(core.granted_resources)
    orm.current_distance = core.current_distance
    orm.return_reason = core.return_reason.value if core.return_reason else None
    orm.experience_gained = core.experience_gained
    orm.coins_gained = core.coins_gained
    orm.start_time = core.start_time
    orm.end_time = core.end_time
    orm.expires_at = core.expires_at


class SqlExpeditionRepository(ExpeditionRepository):
    """expeditions 테이블"""

    def __init__(self, db: Session):
        self._db = db

    @property
    def name(self) -> str:
        return "sql"

    @property
    def transactional(self) -> bool:
        return True

    def create(self, expedition: Expedition) -> Expedition:
        orm = ExpeditionModel(expedition_id=expedition.expedition_id)
        _write_to_orm(expedition, orm)
        self._db.add(orm)
        self._db.flush()
        return expedition

    def get(self, expedition_id: str) -> Optional[Expedition]:
        orm = self._db.get(ExpeditionModel, expedition_id)
        if orm is None:
            return None
        return expedition_to_core(orm)

    def save(self, expedition: Expedition) -> Expedition:
        orm = self._db.get(ExpeditionModel, expedition.expedition_id)
        if orm is None:
            return self.create(expedition)
        _write_to_orm(expedition, orm)
        self._db.flush()
        return expedition

    def delete(self, expedition_id: str) -> None:
        orm = self._db.get(ExpeditionModel, expedition_id)
        if orm is not None:
            self._db.delete(orm)
            self._db.flush()

    def find_active(self, player_id: str) -> Optional[Expedition]:
        orm = (
            self._db.query(ExpeditionModel)
            .filter(
                ExpeditionModel.player_id == player_id,
                ExpeditionModel.status == ExpeditionStatus.ACTIVE.value,
            )
            .order_by(ExpeditionModel.start_time.desc())
            .first()
        )
        return expedition_to_core(orm) if orm is not None else None

    def find_expired(self, now: datetime) -> list[str]:
        rows = (
            self._db.query(ExpeditionModel.expedition_id)
            .filter(
                ExpeditionModel.status != ExpeditionStatus.ACTIVE.value,
                ExpeditionModel.expires_at.is_not(None),
                ExpeditionModel.expires_at <= now,
            )
            .all()
        )
        return [row[0] for row in rows]

    def delete_for_player(self, player_id: str) -> int:
        count = (
            self._db.query(ExpeditionModel)
            .filter(ExpeditionModel.player_id == player_id)
            .delete()
        )
        self._db.flush()
        return count


class InMemoryExpeditionRepository(ExpeditionRepository):
    """프로세스 메모리 저장 (테스트/단일 프로세스용).

    세션 롤백과 무관하므로 서비스는 커밋 성공 후에만 쓴다.
    """

    def __init__(self) -> None:
        self._items: dict[str, Expedition] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "memory"

    def create(self, expedition: Expedition) -> Expedition:
        with self._lock:
            self._items[expedition.expedition_id] = copy.deepcopy(expedition)
        return expedition

    def get(self, expedition_id: str) -> Optional[Expedition]:
        with self._lock:
            item = self._items.get(expedition_id)
            return copy.deepcopy(item) if item is not None else None

    def save(self, expedition: Expedition) -> Expedition:
        return self.create(expedition)

    def delete(self, expedition_id: str) -> None:
        with self._lock:
            self._items.pop(expedition_id, None)

    def find_active(self, player_id: str) -> Optional[Expedition]:
        with self._lock:
            for item in self._items.values():
                if item.player_id == player_id and item.is_active:
                    return copy.deepcopy(item)
        return None

    def find_expired(self, now: datetime) -> list[str]:
        with self._lock:
            return [
                item.expedition_id
                for item in self._items.values()
                if not item.is_active
                and item.expires_at is not None
                and item.expires_at <= now
            ]

    def delete_for_player(self, player_id: str) -> int:
        with self._lock:
            doomed = [
                key for key, item in self._items.items() if item.player_id == player_id
            ]
            for key in doomed:
                del self._items[key]
        return len(doomed)


def get_expedition_repository(
    db: Session, store_name: Optional[str] = None
) -> ExpeditionRepository:
    """Get an expedition repository instance.

    Args:
        db: Session used by the SQL store.
        store_name: Optional store name. If not specified,
                    uses EXPEDITION_STORE from config.
    """
    name = store_name or settings.EXPEDITION_STORE

    if name == "memory":
        logger.debug("Using InMemoryExpeditionRepository")
        return InMemoryExpeditionRepository()

    if name == "sql":
        logger.debug("Using SqlExpeditionRepository")
        return SqlExpeditionRepository(db)

    logger.warning("Unknown expedition store '%s', falling back to sql", name)
    return SqlExpeditionRepository(db)
