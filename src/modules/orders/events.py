"""Domain events for the Orders bounded context.

Events are collected on the ``Order`` aggregate and published on the
in-process bus only after the surrounding transaction commits, so a rolled
back write never notifies anyone.  ``broadcast_type`` is the realtime event
name pushed to listeners.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderEvent(DomainEvent):
    """Common payload: who owns the order and who acted on it."""

    broadcast_type: ClassVar[str] = "updated"

    order_number: str = ""
    baker_id: str = ""
    baker_email: str = ""
    actor_id: str = ""
    actor_email: str = ""


@dataclass(frozen=True)
class OrderCreated(OrderEvent):
    broadcast_type: ClassVar[str] = "created"


@dataclass(frozen=True)
class OrderUpdated(OrderEvent):
    """Order fields, items or image metadata changed."""

    broadcast_type: ClassVar[str] = "updated"

    change: str = "order"


@dataclass(frozen=True)
class OrderDeleted(OrderEvent):
    broadcast_type: ClassVar[str] = "deleted"


@dataclass(frozen=True)
class OrderStageChanged(OrderEvent):
    """Raised once per actual stage mutation (never for a no-op)."""

    broadcast_type: ClassVar[str] = "stage_changed"

    previous_stage: str = ""
    new_stage: str = ""
    comments: str = ""


@dataclass(frozen=True)
class CompletionDetailsUpdated(OrderEvent):
    broadcast_type: ClassVar[str] = "completion_updated"


@dataclass(frozen=True)
class CompletionDetailsConfirmed(OrderEvent):
    broadcast_type: ClassVar[str] = "completion_confirmed"

    delivery_method: str = ""
    payment_method: str = ""
    pickup_schedule: Optional[Dict[str, Any]] = None
    delivery_address: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class CompletionUpdateRequested(OrderEvent):
    broadcast_type: ClassVar[str] = "update_requested"

    reason: str = ""
    requested_changes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CompletionUpdateResolved(OrderEvent):
    broadcast_type: ClassVar[str] = "update_resolved"

    action: str = ""
    admin_response: str = ""


ORDER_EVENTS = (
    OrderCreated,
    OrderUpdated,
    OrderDeleted,
    OrderStageChanged,
    CompletionDetailsUpdated,
    CompletionDetailsConfirmed,
    CompletionUpdateRequested,
    CompletionUpdateResolved,
)
