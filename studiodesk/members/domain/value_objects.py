"""
Members Value Objects
=====================

Pure classification rules and the studio location directory.
"""

from datetime import datetime, timezone
from typing import Dict, Optional, Protocol

from studiodesk.config import MembershipStatus, ActivityLevel


class _MembershipLike(Protocol):
    is_frozen: bool
    end_date: Optional[datetime]


class MemberClassifier:
    """
    Pure functions deriving member status fields.

    Stateless; every result is a function of its inputs only.
    """

    # Upper bound (inclusive) of each activity band, checked in order.
    ACTIVITY_BANDS = (
        (0, ActivityLevel.NEW),
        (5, ActivityLevel.BEGINNER),
        (20, ActivityLevel.REGULAR),
        (50, ActivityLevel.FREQUENT),
    )

    @staticmethod
    def membership_status(
        membership: Optional[_MembershipLike],
        now: Optional[datetime] = None
    ) -> str:
        """
        Status of a membership.

        Frozen wins over date-based expiry. A membership with no end date
        never expires.
        """
        if membership is None:
            return MembershipStatus.INACTIVE
        if membership.is_frozen:
            return MembershipStatus.FROZEN

        end_date = membership.end_date
        if end_date is not None:
            current = now or datetime.now(timezone.utc)
            if end_date.tzinfo is None:
                end_date = end_date.replace(tzinfo=timezone.utc)
            if end_date < current:
                return MembershipStatus.EXPIRED
        return MembershipStatus.ACTIVE

    @classmethod
    def activity_level(cls, total_visits: int) -> str:
        for upper, level in cls.ACTIVITY_BANDS:
            if total_visits <= upper:
                return level
        return ActivityLevel.VIP


class LocationDirectory:
    """
    Maps human-readable studio names to Momence location ids.

    Unknown names resolve to None, meaning no location filter.
    """

    def __init__(self, locations: Dict[str, str]):
        self._locations = dict(locations)

    def resolve(self, location_name: Optional[str]) -> Optional[str]:
        if not location_name:
            return None

        if location_name in self._locations:
            return self._locations[location_name]

        lowered = location_name.lower()
        for name, location_id in self._locations.items():
            if name.lower() in lowered:
                return location_id

        return None
