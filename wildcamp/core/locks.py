"""플레이어 단위 직렬화

같은 플레이어의 변경 요청은 서로 끼어들지 않는다 (원정 틱 vs 퀘스트 완료 등).
플레이어 간 잠금은 없다. RLock이므로 같은 스레드에서 중첩 진입 가능.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class PlayerLocks:
    """player_id → RLock 레지스트리"""

    def __init__(self) -> None:
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, player_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(player_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[player_id] = lock
            return lock

    @contextmanager
    def hold(self, player_id: str) -> Iterator[None]:
        lock = self._lock_for(player_id)
        with lock:
            yield
