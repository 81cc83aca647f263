"""Expedition API endpoints."""

from fastapi import APIRouter, Depends

from wildcamp.api.builders import build_expedition
from wildcamp.api.deps import get_expedition_service
from wildcamp.api.schemas import (
    ErrorResponse,
    ExpeditionResponse,
    StartExpeditionRequest,
    TickRequest,
    TickResponse,
)
from wildcamp.services.expedition_service import ExpeditionService

router = APIRouter(
    prefix="/api/expeditions",
    tags=["expeditions"],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)


@router.post("", response_model=ExpeditionResponse, status_code=201)
def start_expedition(
    request: StartExpeditionRequest,
    expeditions: ExpeditionService = Depends(get_expedition_service),
) -> ExpeditionResponse:
    """
    원정 시작

    허기/갈증 30 이상, 바이옴 요구 레벨 충족, 진행 중 원정 없음이 조건.
    """
    expedition = expeditions.start_expedition(
        request.player_id, request.biome_id, request.selected_resources
    )
    return build_expedition(expedition)


@router.get("/{expedition_id}", response_model=ExpeditionResponse)
def get_expedition(
    expedition_id: str,
    expeditions: ExpeditionService = Depends(get_expedition_service),
) -> ExpeditionResponse:
    return build_expedition(expeditions.get_expedition(expedition_id))


@router.post("/{expedition_id}/tick", response_model=TickResponse)
def simulate_tick(
    expedition_id: str,
    request: TickRequest,
    expeditions: ExpeditionService = Depends(get_expedition_service),
) -> TickResponse:
    """
    채집 1회

    should_return이 true면 클라이언트는 귀환 후 complete를 호출한다.
    """
    result = expeditions.simulate_tick(expedition_id, request.current_distance)
    return TickResponse(
        expedition=build_expedition(result.expedition),
        resource_collected=result.resource_collected,
        should_return=result.should_return,
        return_reason=result.return_reason,
        collection_time=result.collection_time,
    )


@router.post("/{expedition_id}/complete", response_model=ExpeditionResponse)
def complete_expedition(
    expedition_id: str,
    expeditions: ExpeditionService = Depends(get_expedition_service),
) -> ExpeditionResponse:
    """완료 처리 (멱등). 동물 가공 + 경험치/코인 지급"""
    return build_expedition(expeditions.complete_expedition(expedition_id))


@router.post("/{expedition_id}/cancel", response_model=ExpeditionResponse)
def cancel_expedition(
    expedition_id: str,
    expeditions: ExpeditionService = Depends(get_expedition_service),
) -> ExpeditionResponse:
    return build_expedition(expeditions.cancel_expedition(expedition_id))
