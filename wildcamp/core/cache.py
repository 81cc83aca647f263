"""TTL 캐시 - cache-aside 인터페이스

키는 (CacheScope, id) 쌍. 문자열 조합 키 없음.
변경 작업 후 서비스가 invalidate_player()를 동기 호출한다 (무효화 → 응답 순서).
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheScope(str, Enum):
    PLAYER = "player"
    INVENTORY = "inventory"
    STORAGE = "storage"
    ACTIVE_EXPEDITION = "active_expedition"
    QUEST_PROGRESS = "quest_progress"
    CATALOG = "catalog"


# 플레이어 단위로 무효화되는 범위
PLAYER_SCOPES = (
    CacheScope.PLAYER,
    CacheScope.INVENTORY,
    CacheScope.STORAGE,
    CacheScope.ACTIVE_EXPEDITION,
    CacheScope.QUEST_PROGRESS,
)


@dataclass
class _Entry:
    value: Any
    expires_at: float


class TTLCache:
    """인메모리 TTL 캐시.

    player_ttl: 변경 가능한 플레이어 데이터 (기본 30초)
    catalog_ttl: 불변 카탈로그 데이터 (기본 15분)
    """

    def __init__(
        self,
        player_ttl: float = 30,
        catalog_ttl: float = 900,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[tuple[CacheScope, Hashable], _Entry] = {}
        # 키별 무효화 횟수. clear()는 _epoch로 전체 세대를 올린다
        self._generations: dict[tuple[CacheScope, Hashable], int] = {}
        self._epoch = 0
        self._lock = threading.Lock()
        self._clock = clock
        self._default_ttl = {scope: float(player_ttl) for scope in PLAYER_SCOPES}
        self._default_ttl[CacheScope.CATALOG] = float(catalog_ttl)
        self._hits = 0
        self._misses = 0

    def get(self, scope: CacheScope, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get((scope, key))
            if entry is None:
                self._misses += 1
                return None
            if self._clock() > entry.expires_at:
                del self._entries[(scope, key)]
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def set(
        self, scope: CacheScope, key: Hashable, value: Any, ttl: float | None = None
    ) -> None:
        ttl = self._default_ttl[scope] if ttl is None else ttl
        with self._lock:
            self._entries[(scope, key)] = _Entry(value, self._clock() + ttl)

    def get_or_set(
        self,
        scope: CacheScope,
        key: Hashable,
        loader: Callable[[], T],
        ttl: float | None = None,
    ) -> T:
        """캐시 조회, 미스 시 loader 결과 저장 후 반환. None은 캐시하지 않는다.

        loader 실행 중 같은 키가 무효화되면 결과를 반환만 하고 저장하지 않는다.
        무효화 이전에 읽은 값이 무효화 이후 캐시에 남는 것을 막는다.
        """
        cached = self.get(scope, key)
        if cached is not None:
            return cached
        generation = self._generation((scope, key))
        value = loader()
        if value is None:
            return value
        ttl = self._default_ttl[scope] if ttl is None else ttl
        with self._lock:
            if self._generation_locked((scope, key)) == generation:
                self._entries[(scope, key)] = _Entry(value, self._clock() + ttl)
            else:
                logger.debug("Stale load discarded for %s/%s", scope.value, key)
        return value

    def _generation(self, full_key: tuple[CacheScope, Hashable]) -> tuple[int, int]:
        with self._lock:
            return self._generation_locked(full_key)

    def _generation_locked(
        self, full_key: tuple[CacheScope, Hashable]
    ) -> tuple[int, int]:
        return self._epoch, self._generations.get(full_key, 0)

    def _bump(self, full_key: tuple[CacheScope, Hashable]) -> None:
        self._generations[full_key] = self._generations.get(full_key, 0) + 1

    def invalidate(self, scope: CacheScope, key: Hashable) -> None:
        with self._lock:
            self._bump((scope, key))
            self._entries.pop((scope, key), None)

    def invalidate_player(self, player_id: str) -> None:
        """플레이어 관련 모든 범위 무효화."""
        with self._lock:
            for scope in PLAYER_SCOPES:
                self._bump((scope, player_id))
                self._entries.pop((scope, player_id), None)
        logger.debug("Cache invalidated for player %s", player_id)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._generations.clear()
            self._epoch += 1

    def stats(self) -> dict[str, Any]:
        now = self._clock()
        with self._lock:
            active = sum(1 for e in self._entries.values() if e.expires_at >= now)
            total_lookups = self._hits + self._misses
            return {
                "total_items": len(self._entries),
                "active_items": active,
                "expired_items": len(self._entries) - active,
                "hit_rate": round(self._hits / total_lookups, 2) if total_lookups else 0.0,
            }
