"""Immutable pickup location configuration.

Built once from ``settings.PICKUP_LOCATION`` and injected into
``PickupService``; nothing mutates it at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from django.conf import settings

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


@dataclass(frozen=True)
class BusinessHours:
    open: Optional[str] = None
    close: Optional[str] = None
    closed: bool = False

    @property
    def is_open(self) -> bool:
        return not self.closed and bool(self.open and self.close)

    def to_dict(self) -> dict[str, Any]:
        if not self.is_open:
            return {"closed": True}
        return {"open": self.open, "close": self.close}


@dataclass(frozen=True)
class PickupConfig:
    address: Mapping[str, Any]
    coordinates: Mapping[str, float]
    business_hours: Mapping[str, BusinessHours]
    contact: Mapping[str, str] = field(default_factory=dict)
    instructions: Tuple[str, ...] = ()
    slot_minutes: int = 30

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PickupConfig:
        hours = {
            day: BusinessHours(
                open=raw.get("open"),
                close=raw.get("close"),
                closed=bool(raw.get("closed", False)),
            )
            for day, raw in data.get("business_hours", {}).items()
        }
        return cls(
            address=MappingProxyType(dict(data.get("address", {}))),
            coordinates=MappingProxyType(dict(data.get("coordinates", {}))),
            business_hours=MappingProxyType(hours),
            contact=MappingProxyType(dict(data.get("contact", {}))),
            instructions=tuple(data.get("instructions", ())),
            slot_minutes=int(data.get("slot_minutes", 30)),
        )

    @classmethod
    def from_settings(cls) -> PickupConfig:
        return cls.from_dict(settings.PICKUP_LOCATION)

    def hours_for(self, day: date) -> Optional[BusinessHours]:
        """Opening hours on ``day``, or ``None`` when closed."""
        hours = self.business_hours.get(WEEKDAYS[day.weekday()])
        if hours is None or not hours.is_open:
            return None
        return hours

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": dict(self.address),
            "coordinates": dict(self.coordinates),
            "business_hours": {
                day: hours.to_dict() for day, hours in self.business_hours.items()
            },
            "contact": dict(self.contact),
            "instructions": list(self.instructions),
            "slot_minutes": self.slot_minutes,
        }
