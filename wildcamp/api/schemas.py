"""API request/response schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from wildcamp.core.expedition.models import ExpeditionStatus, ReturnReason
from wildcamp.core.quest.models import QuestStatus


# === Request Schemas ===


class RegisterRequest(BaseModel):
    """플레이어 등록 요청"""

    username: str = Field(..., min_length=1, max_length=50, description="사용자 이름")


class SettingsUpdateRequest(BaseModel):
    """플레이어 설정 변경. 지정한 필드만 반영"""

    auto_storage: Optional[bool] = None
    auto_complete_quests: Optional[bool] = None
    crafted_items_destination: Optional[str] = Field(
        None, description="inventory | storage"
    )
    auto_consume: Optional[bool] = None


class MoveItemRequest(BaseModel):
    """인벤토리 ↔ 창고 이동"""

    item_id: str
    quantity: int = 1


class ConsumeRequest(BaseModel):
    item_id: str
    quantity: int = 1
    location: str = Field("inventory", description="inventory | storage")


class EquipRequest(BaseModel):
    equipment_id: str


class UnequipRequest(BaseModel):
    slot: str = Field(..., description="helmet | chestplate | leggings | boots | weapon | tool")


class ConsumableEquipRequest(BaseModel):
    """자동 소비 슬롯 지정 (음료는 drink, 나머지는 food 슬롯)"""

    item_id: str


class ConsumableUnequipRequest(BaseModel):
    slot: str = Field(..., description="food | drink")


class StartExpeditionRequest(BaseModel):
    """원정 시작 요청"""

    player_id: str
    biome_id: str
    selected_resources: list[str] = Field(default_factory=list)


class TickRequest(BaseModel):
    """클라이언트 진행 상태 보고 (캠프로부터의 거리)"""

    current_distance: float


class CraftRequest(BaseModel):
    recipe_id: str
    quantity: int = 1


# === Response Schemas ===


class ErrorResponse(BaseModel):
    """에러 응답"""

    error: str
    code: str
    details: Optional[Any] = None


class PlayerSettingsInfo(BaseModel):
    auto_storage: bool
    auto_complete_quests: bool
    crafted_items_destination: str
    auto_consume: bool


class PlayerResponse(BaseModel):
    """플레이어 장부"""

    player_id: str
    username: str
    hunger: float
    max_hunger: float
    thirst: float
    max_thirst: float
    level: int
    experience: int
    coins: int
    inventory_weight: float
    max_inventory_weight: float
    equipped: dict[str, Optional[str]] = {}
    equipped_food: Optional[str] = None
    equipped_drink: Optional[str] = None
    settings: PlayerSettingsInfo


class ItemStackInfo(BaseModel):
    resource_id: str
    quantity: int
    item_type: str


class ItemListResponse(BaseModel):
    """인벤토리 또는 창고 목록"""

    player_id: str
    items: list[ItemStackInfo] = []
    total_weight: Optional[float] = None
    max_weight: Optional[float] = None


class ConsumeResponse(BaseModel):
    hunger: float
    thirst: float
    hunger_restored: float
    thirst_restored: float


class VitalsUpdateResponse(BaseModel):
    """경과 시간 반영 결과"""

    player: PlayerResponse
    intervals: int
    auto_consumed: list[str] = []


class ExpeditionResponse(BaseModel):
    """원정 상태"""

    expedition_id: str
    player_id: str
    biome_id: str
    selected_resources: list[str]
    status: ExpeditionStatus
    collected_resources: dict[str, int] = {}
    current_distance: float
    return_reason: Optional[ReturnReason] = None
    experience_gained: int = 0
    coins_gained: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class ActiveExpeditionResponse(BaseModel):
    expedition: Optional[ExpeditionResponse] = None


class TickResponse(BaseModel):
    """틱 1회 결과"""

    expedition: ExpeditionResponse
    resource_collected: Optional[str] = None
    should_return: bool = False
    return_reason: Optional[ReturnReason] = None
    collection_time: int = 0


class ResourceInfo(BaseModel):
    resource_id: str
    name: str
    category: str
    weight: float
    value: int
    rarity: str
    emoji: str = ""
    experience: int
    required_tool: str
    distance_from_camp: float
    collection_time_minutes: int
    hunger_restore: float = 0
    thirst_restore: float = 0


class EquipmentInfo(BaseModel):
    equipment_id: str
    name: str
    slot: str
    tool_type: str
    weight: float
    emoji: str = ""
    bonus: dict[str, Any] = {}


class RecipeInfo(BaseModel):
    recipe_id: str
    name: str
    required_level: int
    ingredients: dict[str, int]
    outputs: dict[str, int]
    emoji: str = ""


class BiomeInfo(BaseModel):
    biome_id: str
    name: str
    required_level: int
    resource_ids: list[str]
    emoji: str = ""
    description: str = ""


class BiomeResourceInfo(BaseModel):
    """바이옴 자원 + 현재 장비 기준 채집 가능 여부"""

    resource: ResourceInfo
    distance_from_camp: float
    required_tool: str
    collectable: bool


class QuestObjectiveInfo(BaseModel):
    type: str
    target: Optional[str] = None
    quantity: int
    description: str = ""


class QuestInfo(BaseModel):
    quest_id: str
    name: str
    description: str = ""
    category: str = ""
    emoji: str = ""
    required_level: int
    objectives: list[QuestObjectiveInfo]
    rewards: dict[str, Any]


class PlayerQuestInfo(BaseModel):
    """퀘스트 + 플레이어 진행 상태"""

    quest: QuestInfo
    status: QuestStatus
    progress: dict[str, dict[str, Any]] = {}
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class QuestProgressResponse(BaseModel):
    quest_id: str
    status: QuestStatus
    progress: dict[str, dict[str, Any]] = {}


class QuestRewardResponse(BaseModel):
    """퀘스트 완료 보상"""

    quest_id: str
    experience: int
    coins: int
    items: dict[str, int] = {}
    level: int
    leveled_up: bool


class CraftResponse(BaseModel):
    recipe_id: str
    quantity: int
    consumed: dict[str, int]
    produced: dict[str, int]
    placement: dict[str, dict[str, int]]


class MessageResponse(BaseModel):
    success: bool = True
    message: str = ""
