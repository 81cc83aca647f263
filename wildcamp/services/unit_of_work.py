"""커밋 / 캐시 무효화 공통 처리

순서: commit → invalidate → (이벤트 발행) → 응답
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.orm import Session

from wildcamp.core.cache import TTLCache

logger = logging.getLogger(__name__)


def commit_or_rollback(db: Session) -> None:
    """커밋 실패 시 롤백 후 그대로 전파 (자동 재시도 없음)"""
    try:
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Commit failed, session rolled back")
        raise


def invalidate_player_cache(cache: TTLCache, player_id: str) -> None:
    """무효화 실패는 WARNING 로그만 남긴다. 변경은 이미 커밋됨."""
    try:
        cache.invalidate_player(player_id)
    except Exception as e:
        logger.warning("Cache invalidation failed for player %s: %s", player_id, e)


@contextmanager
def rollback_on_error(db: Session) -> Iterator[None]:
    """stage 도중 실패 시 flush된 변경까지 롤백"""
    try:
        yield
    except Exception:
        db.rollback()
        raise
