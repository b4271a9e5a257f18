"""Pickup location, availability and slot validation."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

import structlog
from django.utils import timezone

from modules.pickup.config import WEEKDAYS, PickupConfig
from modules.pickup.exceptions import InvalidPickupSlot

logger = structlog.get_logger(__name__)


def _minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_time_12h(value: str) -> str:
    """``"14:30"`` -> ``"2:30 PM"``."""
    hours, minutes = value.split(":")
    hour = int(hours)
    suffix = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minutes} {suffix}"


def generate_time_slots(
    open_time: str, close_time: str, step_minutes: int = 30
) -> List[Dict[str, str]]:
    """Slots from opening time up to (not including) closing time."""
    slots = []
    current, close = _minutes(open_time), _minutes(close_time)
    while current < close:
        value = f"{current // 60:02d}:{current % 60:02d}"
        slots.append({"value": value, "label": format_time_12h(value)})
        current += step_minutes
    return slots


class PickupService:
    def __init__(
        self,
        config: Optional[PickupConfig] = None,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._config = config or PickupConfig.from_settings()
        self._clock = clock

    @property
    def config(self) -> PickupConfig:
        return self._config

    def location(self) -> Dict[str, Any]:
        return self._config.to_dict()

    def availability(self, day: date) -> Dict[str, Any]:
        day_name = WEEKDAYS[day.weekday()]
        hours = self._config.hours_for(day)
        if hours is None:
            return {
                "available": False,
                "date": day.isoformat(),
                "day_of_week": day_name,
                "reason": f"We are closed on {day_name}s",
                "business_hours": None,
                "available_time_slots": [],
            }
        return {
            "available": True,
            "date": day.isoformat(),
            "day_of_week": day_name,
            "business_hours": hours.to_dict(),
            "available_time_slots": generate_time_slots(
                hours.open, hours.close, self._config.slot_minutes
            ),
        }

    def validate_slot(
        self, day: date, time: str, now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Check a requested pickup slot.

        Raises:
            InvalidPickupSlot: past date or time, closed day, or outside
                opening hours.
        """
        local_now = timezone.localtime(now or self._clock())
        if day < local_now.date():
            raise InvalidPickupSlot("Cannot schedule pickup for a past date")
        if day == local_now.date() and _minutes(time) < _minutes(
            local_now.strftime("%H:%M")
        ):
            raise InvalidPickupSlot("Cannot schedule pickup for a past time")

        day_name = WEEKDAYS[day.weekday()]
        hours = self._config.hours_for(day)
        if hours is None:
            raise InvalidPickupSlot(f"We are closed on {day_name}s")

        if not _minutes(hours.open) <= _minutes(time) < _minutes(hours.close):
            logger.info(
                "pickup.slot_outside_hours", date=day.isoformat(), time=time
            )
            raise InvalidPickupSlot(
                f"Pickup time must be between {format_time_12h(hours.open)} "
                f"and {format_time_12h(hours.close)}"
            )

        return {
            "date": day.isoformat(),
            "time": time,
            "day_of_week": day_name,
            "formatted": {
                "date": day.strftime("%d/%m/%Y"),
                "time": format_time_12h(time),
            },
        }
