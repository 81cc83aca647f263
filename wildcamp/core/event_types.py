"""도메인 이벤트 유형 상수

발행 시점: 항상 DB 커밋 이후.
"""


class EventTypes:
    """이벤트 유형 문자열 상수"""

    # === Expedition events (ExpeditionService → QuestService) ===
    EXPEDITION_STARTED = "expedition_started"
    EXPEDITION_COMPLETED = "expedition_completed"  # {player_id, expedition_id, biome_id}
    EXPEDITION_CANCELLED = "expedition_cancelled"
    RESOURCE_COLLECTED = "resource_collected"  # {player_id, resource_id, quantity}

    # === Crafting ===
    ITEM_CRAFTED = "item_crafted"  # {player_id, item_id, quantity}

    # === Combat (외부 발행, 퀘스트만 구독) ===
    CREATURE_KILLED = "creature_killed"  # {player_id, creature_id, quantity}

    # === Quest events ===
    QUEST_STARTED = "quest_started"
    QUEST_COMPLETED = "quest_completed"
    QUEST_CANCELLED = "quest_cancelled"

    # === Player ===
    PLAYER_LEVELED_UP = "player_leveled_up"
