# freight_market/core/clock.py
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Ahora en UTC, naive (así se guarda en BD)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    # Fechas con zona → UTC sin tzinfo; las naive se asumen ya en UTC
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
