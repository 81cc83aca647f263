"""Application configuration loaded from environment variables and .env file."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    DATABASE_URL: str = "sqlite:///./wildcamp.db"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Catalog (정적 게임 데이터)
    DATA_DIR: Path = PACKAGE_DIR / "data"

    # Expedition store: "sql" | "memory"
    EXPEDITION_STORE: str = "sql"

    # Expedition tuning
    MIN_VITALS_FOR_EXPEDITION: float = 30
    AUTO_RETURN_WEIGHT_RATIO: float = 0.9
    AUTO_RETURN_VITALS_RATIO: float = 0.1
    COLLECTION_SUCCESS_RATE: float = 0.85
    COLLECTION_VITALS_DECAY: float = 0.5
    EXPEDITION_RETENTION_SECONDS: int = 300

    # Rewards / progression
    COIN_REWARD_RATIO: float = 0.1
    BASE_LEVEL_EXPERIENCE: int = 100
    LEVEL_EXPERIENCE_STEP: int = 50

    # Quests
    MAX_ACTIVE_QUESTS: int = 5

    # Player defaults
    DEFAULT_MAX_HUNGER: float = 100
    DEFAULT_MAX_THIRST: float = 100
    DEFAULT_MAX_INVENTORY_WEIGHT: float = 50.0

    # Passive vitals (경과 시간 기준으로만 계산, 서버 타이머 없음)
    VITALS_DECAY_INTERVAL_SECONDS: int = 120
    PASSIVE_HUNGER_DECAY: float = 3
    PASSIVE_THIRST_DECAY: float = 4
    AUTO_CONSUME_RATIO: float = 0.15

    # Cache TTLs
    PLAYER_CACHE_TTL_SECONDS: int = 30
    CATALOG_CACHE_TTL_SECONDS: int = 900


settings = Settings()
