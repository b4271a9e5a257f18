"""Pickup slot validation errors."""

from __future__ import annotations


class InvalidPickupSlot(Exception):
    """The requested date/time cannot be booked for collection."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
