"""Player API endpoints - 장부, 인벤토리/창고, 장비, 퀘스트, 제작"""

from fastapi import APIRouter, Depends

from wildcamp.api.builders import (
    build_expedition,
    build_items,
    build_player,
    build_player_quest,
)
from wildcamp.api.deps import (
    get_crafting_service,
    get_expedition_service,
    get_inventory_service,
    get_player_service,
    get_quest_service,
)
from wildcamp.api.schemas import (
    ActiveExpeditionResponse,
    ConsumableEquipRequest,
    ConsumableUnequipRequest,
    ConsumeRequest,
    ConsumeResponse,
    CraftRequest,
    CraftResponse,
    EquipRequest,
    ErrorResponse,
    ItemListResponse,
    MoveItemRequest,
    PlayerQuestInfo,
    PlayerResponse,
    QuestProgressResponse,
    QuestRewardResponse,
    RegisterRequest,
    SettingsUpdateRequest,
    UnequipRequest,
    VitalsUpdateResponse,
)
from wildcamp.core.logging import get_logger
from wildcamp.core.quest.models import PlayerQuest
from wildcamp.services.crafting_service import CraftingService
from wildcamp.services.expedition_service import ExpeditionService
from wildcamp.services.inventory_service import InventoryService
from wildcamp.services.player_service import PlayerService
from wildcamp.services.quest_service import QuestService

logger = get_logger(__name__)

ERRORS = {400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}

router = APIRouter(prefix="/api/players", tags=["players"], responses=ERRORS)


def _quest_state(pq: PlayerQuest) -> QuestProgressResponse:
    return QuestProgressResponse(
        quest_id=pq.quest_id, status=pq.status, progress=pq.progress_dict()
    )


# === 장부 ===


@router.post("", response_model=PlayerResponse, status_code=201)
def register_player(
    request: RegisterRequest,
    players: PlayerService = Depends(get_player_service),
) -> PlayerResponse:
    """새 플레이어 등록 (기본 허기/갈증/무게 한도)"""
    return build_player(players.register_player(request.username))


@router.get("/{player_id}", response_model=PlayerResponse)
def get_player(
    player_id: str,
    players: PlayerService = Depends(get_player_service),
) -> PlayerResponse:
    return build_player(players.get_player(player_id))


@router.patch("/{player_id}/settings", response_model=PlayerResponse)
def update_settings(
    player_id: str,
    request: SettingsUpdateRequest,
    players: PlayerService = Depends(get_player_service),
) -> PlayerResponse:
    changes = request.model_dump(exclude_none=True)
    return build_player(players.update_settings(player_id, **changes))


@router.post("/{player_id}/reset", response_model=PlayerResponse)
def reset_player(
    player_id: str,
    players: PlayerService = Depends(get_player_service),
) -> PlayerResponse:
    return build_player(players.reset_player(player_id))


# === 인벤토리/창고 ===


@router.get("/{player_id}/inventory", response_model=ItemListResponse)
def get_inventory(
    player_id: str,
    players: PlayerService = Depends(get_player_service),
    inventory: InventoryService = Depends(get_inventory_service),
) -> ItemListResponse:
    player = players.get_player(player_id)
    return ItemListResponse(
        player_id=player_id,
        items=build_items(inventory.list_inventory(player_id)),
        total_weight=player.inventory_weight,
        max_weight=player.max_inventory_weight,
    )


@router.get("/{player_id}/storage", response_model=ItemListResponse)
def get_storage(
    player_id: str,
    inventory: InventoryService = Depends(get_inventory_service),
) -> ItemListResponse:
    return ItemListResponse(
        player_id=player_id,
        items=build_items(inventory.list_storage(player_id)),
    )


@router.post("/{player_id}/inventory/move-to-storage", response_model=PlayerResponse)
def move_to_storage(
    player_id: str,
    request: MoveItemRequest,
    players: PlayerService = Depends(get_player_service),
    inventory: InventoryService = Depends(get_inventory_service),
) -> PlayerResponse:
    inventory.move_to_storage(player_id, request.item_id, request.quantity)
    return build_player(players.get_player(player_id))


@router.post("/{player_id}/storage/move-to-inventory", response_model=PlayerResponse)
def move_to_inventory(
    player_id: str,
    request: MoveItemRequest,
    players: PlayerService = Depends(get_player_service),
    inventory: InventoryService = Depends(get_inventory_service),
) -> PlayerResponse:
    inventory.move_to_inventory(player_id, request.item_id, request.quantity)
    return build_player(players.get_player(player_id))


@router.post("/{player_id}/consume", response_model=ConsumeResponse)
def consume_item(
    player_id: str,
    request: ConsumeRequest,
    players: PlayerService = Depends(get_player_service),
) -> ConsumeResponse:
    """음식/음료 소비 → 허기/갈증 회복"""
    result = players.consume_item(
        player_id, request.item_id, request.quantity, request.location
    )
    return ConsumeResponse(**result)


@router.post("/{player_id}/vitals/update", response_model=VitalsUpdateResponse)
def update_vitals(
    player_id: str,
    players: PlayerService = Depends(get_player_service),
) -> VitalsUpdateResponse:
    """경과 시간만큼 허기/갈증 감소 + 자동 소비"""
    result = players.update_vitals(player_id)
    return VitalsUpdateResponse(
        player=build_player(result["player"]),
        intervals=result["intervals"],
        auto_consumed=result["auto_consumed"],
    )


# === 장비 ===


@router.post("/{player_id}/equip", response_model=PlayerResponse)
def equip_item(
    player_id: str,
    request: EquipRequest,
    players: PlayerService = Depends(get_player_service),
) -> PlayerResponse:
    return build_player(players.equip_item(player_id, request.equipment_id))


@router.post("/{player_id}/unequip", response_model=PlayerResponse)
def unequip_item(
    player_id: str,
    request: UnequipRequest,
    players: PlayerService = Depends(get_player_service),
) -> PlayerResponse:
    return build_player(players.unequip_item(player_id, request.slot))


@router.post("/{player_id}/consumables/equip", response_model=PlayerResponse)
def equip_consumable(
    player_id: str,
    request: ConsumableEquipRequest,
    players: PlayerService = Depends(get_player_service),
) -> PlayerResponse:
    return build_player(players.equip_consumable(player_id, request.item_id))


@router.post("/{player_id}/consumables/unequip", response_model=PlayerResponse)
def unequip_consumable(
    player_id: str,
    request: ConsumableUnequipRequest,
    players: PlayerService = Depends(get_player_service),
) -> PlayerResponse:
    return build_player(players.unequip_consumable(player_id, request.slot))


# === 원정 ===


@router.get(
    "/{player_id}/expeditions/active", response_model=ActiveExpeditionResponse
)
def get_active_expedition(
    player_id: str,
    expeditions: ExpeditionService = Depends(get_expedition_service),
) -> ActiveExpeditionResponse:
    expedition = expeditions.get_active_expedition(player_id)
    return ActiveExpeditionResponse(
        expedition=build_expedition(expedition) if expedition is not None else None
    )


# === 퀘스트 ===


@router.get("/{player_id}/quests", response_model=list[PlayerQuestInfo])
def list_quests(
    player_id: str,
    quests: QuestService = Depends(get_quest_service),
) -> list[PlayerQuestInfo]:
    """참여 가능한 퀘스트 + 상태/진행도. 조회 시 active 퀘스트 목표를 재판정한다."""
    return [build_player_quest(entry) for entry in quests.list_player_quests(player_id)]


@router.post("/{player_id}/quests/{quest_id}/start", response_model=QuestProgressResponse)
def start_quest(
    player_id: str,
    quest_id: str,
    quests: QuestService = Depends(get_quest_service),
) -> QuestProgressResponse:
    return _quest_state(quests.start_quest(player_id, quest_id))


@router.post(
    "/{player_id}/quests/{quest_id}/complete", response_model=QuestRewardResponse
)
def complete_quest(
    player_id: str,
    quest_id: str,
    quests: QuestService = Depends(get_quest_service),
) -> QuestRewardResponse:
    """목표 재판정 후 완료. 미달이면 400"""
    return QuestRewardResponse(**quests.claim_quest(player_id, quest_id))


@router.post("/{player_id}/quests/{quest_id}/cancel", response_model=QuestProgressResponse)
def cancel_quest(
    player_id: str,
    quest_id: str,
    quests: QuestService = Depends(get_quest_service),
) -> QuestProgressResponse:
    return _quest_state(quests.cancel_quest(player_id, quest_id))


@router.post("/{player_id}/quests/{quest_id}/reset", response_model=QuestProgressResponse)
def reset_quest(
    player_id: str,
    quest_id: str,
    quests: QuestService = Depends(get_quest_service),
) -> QuestProgressResponse:
    return _quest_state(quests.reset_quest(player_id, quest_id))


@router.get(
    "/{player_id}/quests/{quest_id}/progress", response_model=QuestProgressResponse
)
def get_quest_progress(
    player_id: str,
    quest_id: str,
    quests: QuestService = Depends(get_quest_service),
) -> QuestProgressResponse:
    return QuestProgressResponse(**quests.get_quest_progress(player_id, quest_id))


# === 제작 ===


@router.post("/{player_id}/craft", response_model=CraftResponse)
def craft(
    player_id: str,
    request: CraftRequest,
    crafting: CraftingService = Depends(get_crafting_service),
) -> CraftResponse:
    result = crafting.craft(player_id, request.recipe_id, request.quantity)
    logger.debug("Craft response for %s: %s", player_id, result["placement"])
    return CraftResponse(**result)
