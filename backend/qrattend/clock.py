"""
Horloge injectable : toute la logique de présence lit l'heure via un Clock,
jamais via datetime.now() directement, pour rester testable.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def as_utc(value: datetime) -> datetime:
    """Normalise un datetime en UTC aware (SQLite renvoie des datetimes naïfs)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Clock:
    """Horloge système (UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Horloge figée, avançable à la main, utilisée par les tests."""

    def __init__(self, current: Optional[datetime] = None):
        self.current = as_utc(current or datetime.now(timezone.utc))

    def now(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> datetime:
        self.current = self.current + delta
        return self.current
