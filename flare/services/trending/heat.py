"""
Heat Scorer

Engagement velocity (engagements per hour) bucketed into heat levels.
Velocity is a display concern; ranking uses raw engagement.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .models import ContentItem, HeatBadge, HeatLevel

# Items younger than this use it as their age
MIN_AGE_HOURS = 0.5

# Checked hottest first
HEAT_THRESHOLDS: List[Tuple[float, HeatLevel]] = [
    (1000.0, HeatLevel.VIRAL),
    (500.0, HeatLevel.FIRE),
    (200.0, HeatLevel.HOT),
    (50.0, HeatLevel.WARM),
]

HEAT_BADGES: Dict[HeatLevel, HeatBadge] = {
    HeatLevel.WARM: HeatBadge(level=HeatLevel.WARM, label="Warm", icon="☀️"),
    HeatLevel.HOT: HeatBadge(level=HeatLevel.HOT, label="Hot", icon="🔥"),
    HeatLevel.FIRE: HeatBadge(level=HeatLevel.FIRE, label="On Fire", icon="🔥", animate=True),
    HeatLevel.VIRAL: HeatBadge(level=HeatLevel.VIRAL, label="Viral", icon="🚀", animate=True),
}


def velocity(engagement_count: int, hours_old: float) -> float:
    """Engagements per hour, with the age floored at half an hour."""
    return max(0, engagement_count) / max(hours_old, MIN_AGE_HOURS)


def heat_level(engagement_count: int, hours_old: float) -> HeatLevel:
    v = velocity(engagement_count, hours_old)
    for threshold, level in HEAT_THRESHOLDS:
        if v >= threshold:
            return level
    return HeatLevel.COLD


def heat_badge(level: HeatLevel) -> Optional[HeatBadge]:
    """Badge for a heat level; cold content gets none."""
    return HEAT_BADGES.get(level)


def hours_since(timestamp: datetime, now: Optional[datetime] = None) -> float:
    now = now or datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return (now - timestamp).total_seconds() / 3600


def annotate(item: ContentItem, now: Optional[datetime] = None) -> Dict[str, object]:
    """API dict for an item with its heat computed at read time."""
    age = hours_since(item.timestamp, now)
    level = heat_level(item.engagement_count, age)
    badge = heat_badge(level)
    return {
        **item.to_dict(),
        "heatLevel": level.value,
        "velocity": round(velocity(item.engagement_count, age), 2),
        "heatBadge": badge.to_dict() if badge else None,
    }
