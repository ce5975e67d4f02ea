"""
Ledger time — время ledger в секундах от 2000-01-01T00:00:00Z.

Поля Expiration в ledger хранятся в этой эпохе, а не в Unix time.
"""

from datetime import datetime, timezone
from typing import Final

# Смещение ledger-эпохи относительно Unix-эпохи (секунды)
LEDGER_EPOCH_OFFSET: Final[int] = 946_684_800


def to_ledger_time(moment: datetime) -> int:
    """datetime (aware) → секунды ledger-эпохи."""
    if moment.tzinfo is None:
        raise ValueError("ledger timestamps require a timezone-aware datetime")
    seconds = int(moment.timestamp()) - LEDGER_EPOCH_OFFSET
    if seconds < 0:
        raise ValueError(f"{moment.isoformat()} precedes the ledger epoch")
    return seconds


def from_ledger_time(seconds: int) -> datetime:
    """Секунды ledger-эпохи → aware datetime (UTC)."""
    return datetime.fromtimestamp(seconds + LEDGER_EPOCH_OFFSET, tz=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(moment: datetime) -> datetime:
    """Naive datetime считается UTC; aware приводится к UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
