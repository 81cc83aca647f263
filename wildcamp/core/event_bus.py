"""EventBus - 서비스 간 도메인 이벤트 통신 인프라

규칙:
- 원정/제작 서비스는 퀘스트 트래커를 직접 호출하지 않는다. 이벤트로 알린다
- 이벤트는 커밋 이후에만 발행한다
- 이벤트 데이터는 식별자와 수량 위주 (ORM 객체 금지)
- 전파 깊이 최대 MAX_DEPTH 단계
- 한 체인 안에서 동일 source + 동일 payload 이벤트 중복 발행 금지
- 체인(깊이, 중복 추적)은 스레드별. 동시 요청끼리 체인을 공유하지 않는다
"""

import json
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Set

from wildcamp.core.logging import get_logger

logger = get_logger(__name__)

MAX_DEPTH = 5  # 한 요청 내 이벤트 전파 최대 깊이


@dataclass
class _ChainState:
    depth: int = 0
    emitted: Set[str] = field(default_factory=set)


@dataclass
class GameEvent:
    """이벤트 데이터 컨테이너

    Args:
        event_type: 이벤트 유형 (EventTypes 상수)
        data: 이벤트 데이터 (player_id, resource_id, quantity 등)
        source: 발행한 서비스 이름
    """

    event_type: str
    data: Dict[str, Any]
    source: str

    # 내부 추적용 (외부에서 설정하지 않음)
    _depth: int = field(default=0, repr=False)

    @property
    def chain_key(self) -> str:
        """중복 판정 키. 같은 원인에서 다른 자원의 이벤트는 허용한다."""
        payload = json.dumps(self.data, sort_keys=True, default=str)
        return f"{self.source}:{self.event_type}:{payload}"


# 핸들러 타입: GameEvent를 받는 callable
EventHandler = Callable[[GameEvent], None]


class EventBus:
    """동기식 이벤트 버스

    사용 패턴:
        bus = EventBus()
        bus.subscribe(EventTypes.RESOURCE_COLLECTED, quest_service.handle_collect)
        bus.emit(GameEvent(event_type=EventTypes.RESOURCE_COLLECTED,
                           data={"player_id": "p1", "resource_id": "res_carne", "quantity": 3},
                           source="expedition_service"))
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._local = threading.local()

    @property
    def _chain(self) -> _ChainState:
        """현재 스레드의 체인 상태"""
        state = getattr(self._local, "chain", None)
        if state is None:
            state = _ChainState()
            self._local.chain = state
        return state

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """이벤트 구독 등록"""
        self._handlers[event_type].append(handler)
        logger.debug(f"EventBus 구독: {event_type} → {handler.__qualname__}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        """이벤트 구독 해제"""
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(
                    f"EventBus 구독 해제: {event_type} → {handler.__qualname__}"
                )
            except ValueError:
                logger.warning(f"핸들러 미등록: {event_type} → {handler.__qualname__}")

    def emit(self, event: GameEvent) -> None:
        """이벤트 발행. 등록된 핸들러를 동기 호출.

        안전장치:
        1. 전파 깊이 MAX_DEPTH 초과 시 무시
        2. 같은 체인에서 동일 chain_key 재발행 시 무시
        3. 핸들러 예외는 로그만 남기고 발행자에게 전파하지 않음
        """
        chain = self._chain
        if chain.depth >= MAX_DEPTH:
            logger.warning(
                f"EventBus 전파 깊이 초과 ({MAX_DEPTH}): "
                f"{event.source}:{event.event_type} 무시됨"
            )
            return

        chain_key = event.chain_key
        if chain_key in chain.emitted:
            logger.warning(f"EventBus 중복 이벤트 차단: {chain_key}")
            return

        chain.emitted.add(chain_key)
        event._depth = chain.depth

        handlers = list(self._handlers.get(event.event_type, []))
        if not handlers:
            logger.debug(f"EventBus: {event.event_type} 구독자 없음")
            return

        logger.info(
            f"EventBus 전파: {event.event_type} (source={event.source}, "
            f"depth={chain.depth}, handlers={len(handlers)})"
        )

        chain.depth += 1
        try:
            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        f"EventBus 핸들러 에러: {handler.__qualname__} "
                        f"(event={event.event_type})"
                    )
        finally:
            chain.depth -= 1

    def emit_all(self, events: Iterable[GameEvent]) -> None:
        """한 요청(트랜잭션)에서 나온 이벤트 묶음 발행 후 체인 초기화."""
        try:
            for event in events:
                self.emit(event)
        finally:
            if self._chain.depth == 0:
                self.reset_chain()

    def reset_chain(self) -> None:
        """요청 종료 시 호출. 현재 스레드의 중복 추적 초기화."""
        self._local.chain = _ChainState()

    def clear(self) -> None:
        """모든 구독 해제 (테스트용)"""
        self._handlers.clear()
        self.reset_chain()

    @property
    def handler_count(self) -> int:
        """등록된 총 핸들러 수"""
        return sum(len(h) for h in self._handlers.values())
