"""SQLAlchemy declarative base and ORM models."""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import JSON


class Base(DeclarativeBase):
    """Base class for all database models."""


class PlayerModel(Base):
    """플레이어 장부"""

    __tablename__ = "players"

    player_id: Mapped[str] = mapped_column(String, primary_key=True)
    username: Mapped[str] = mapped_column(String, unique=True, nullable=False)

    hunger: Mapped[float] = mapped_column(Float, nullable=False, default=100.0)
    max_hunger: Mapped[float] = mapped_column(Float, nullable=False, default=100.0)
    thirst: Mapped[float] = mapped_column(Float, nullable=False, default=100.0)
    max_thirst: Mapped[float] = mapped_column(Float, nullable=False, default=100.0)

    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    coins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    inventory_weight: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    max_inventory_weight: Mapped[float] = mapped_column(
        Float, nullable=False, default=50.0
    )

    # {slot: equipment_id | None}
    equipped: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    # PlayerSettings.to_dict()
    settings: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # 자동 소비용 음식/음료 슬롯 (장비 슬롯과 별개)
    equipped_food: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    equipped_drink: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    # 패시브 감소가 마지막으로 반영된 시각. 남은 시간은 다음 계산으로 넘어간다
    vitals_updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class InventoryItemModel(Base):
    """인벤토리 행. (player_id, resource_id, item_type)당 1행, quantity > 0"""

    __tablename__ = "inventory_items"
    __table_args__ = (
        UniqueConstraint("player_id", "resource_id", "item_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_id: Mapped[str] = mapped_column(
        String, ForeignKey("players.player_id", ondelete="CASCADE"), nullable=False
    )
    resource_id: Mapped[str] = mapped_column(String, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    item_type: Mapped[str] = mapped_column(String, nullable=False, default="resource")


class StorageItemModel(Base):
    """창고 행. 무게 제한 없음"""

    __tablename__ = "storage_items"
    __table_args__ = (
        UniqueConstraint("player_id", "resource_id", "item_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_id: Mapped[str] = mapped_column(
        String, ForeignKey("players.player_id", ondelete="CASCADE"), nullable=False
    )
    resource_id: Mapped[str] = mapped_column(String, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    item_type: Mapped[str] = mapped_column(String, nullable=False, default="resource")


class ExpeditionModel(Base):
    """원정"""

    __tablename__ = "expeditions"

    expedition_id: Mapped[str] = mapped_column(String, primary_key=True)
    player_id: Mapped[str] = mapped_column(
        String, ForeignKey("players.player_id", ondelete="CASCADE"), nullable=False
    )
    biome_id: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")

    selected_resources: Mapped[list] = mapped_column(JSON, default=list)
    collected_resources: Mapped[dict] = mapped_column(JSON, default=dict)
    granted_resources: Mapped[dict] = mapped_column(JSON, default=dict)

    current_distance: Mapped[float] = mapped_column(Float, default=0.0)
    return_reason: Mapped[str | None] = mapped_column(String, nullable=True)
    experience_gained: Mapped[int] = mapped_column(Integer, default=0)
    coins_gained: Mapped[int] = mapped_column(Integer, default=0)

    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class PlayerQuestModel(Base):
    """플레이어별 퀘스트 진행"""

    __tablename__ = "player_quests"
    __table_args__ = (UniqueConstraint("player_id", "quest_id"),)

    id: Mapped[str] = mapped_column(String, primary_key=True)
    player_id: Mapped[str] = mapped_column(
        String, ForeignKey("players.player_id", ondelete="CASCADE"), nullable=False
    )
    quest_id: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="available")
    # {objective_key: {current, required, completed}}
    progress: Mapped[dict] = mapped_column(JSON, default=dict)
    started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
