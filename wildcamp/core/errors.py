"""게임 에러 분류

모든 에러는 호출자에게 동기적으로 보고된다. 서버 측 자동 재시도 없음.
API 계층(wildcamp.api.errors)이 status_code / code 그대로 응답으로 변환한다.
"""

from typing import Any, Optional


class GameError(Exception):
    """게임 에러 기본 클래스"""

    status_code: int = 400
    code: str = "GAME_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(GameError):
    """잘못된 입력 (400)"""

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(GameError):
    """플레이어/바이옴/퀘스트/원정 등 미존재 (404)"""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource", details: Optional[Any] = None):
        super().__init__(f"{resource} not found", details)
        self.resource = resource


class InvalidOperationError(GameError):
    """비즈니스 규칙 위반 (400). 메시지는 사용자에게 그대로 노출된다."""

    status_code = 400
    code = "INVALID_OPERATION"


class InsufficientResourcesError(GameError):
    """제작/소비 재료 부족 (400)"""

    status_code = 400
    code = "INSUFFICIENT_RESOURCES"

    def __init__(self, resource: str, details: Optional[Any] = None):
        super().__init__(f"Insufficient {resource}", details)
        self.resource = resource
