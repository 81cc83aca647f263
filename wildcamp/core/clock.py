"""UTC 시각 (naive, SQLite DateTime 호환)"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
