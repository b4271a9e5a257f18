"""Realtime fan-out of order changes over Redis pub/sub.

Listeners subscribe to ``<prefix>:order-<id>``, ``<prefix>:admins`` and
``<prefix>:baker-<bakerId>``.  Publishing is best-effort: a disabled
broadcaster or a channel with no subscribers is not an error.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional

import structlog
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django_redis import get_redis_connection

from modules.orders.events import OrderDeleted, OrderEvent
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderSerializer

logger = structlog.get_logger(__name__)

SnapshotLoader = Callable[[Any], Optional[Dict[str, Any]]]


def _default_connection() -> Any:
    return get_redis_connection("default")


def _default_snapshot(order_id: Any) -> Optional[Dict[str, Any]]:
    order = OrderDjangoRepository().get_by_id(str(order_id))
    if order is None:
        return None
    return OrderSerializer(order).data


_ENVELOPE_FIELDS = {
    "aggregate_id",
    "event_id",
    "occurred_on",
    "event_name",
    "order_number",
    "baker_id",
    "baker_email",
    "actor_id",
    "actor_email",
}


class RealtimeBroadcaster:
    def __init__(
        self,
        enabled: Optional[bool] = None,
        prefix: Optional[str] = None,
        connection_factory: Callable[[], Any] = _default_connection,
        snapshot_loader: SnapshotLoader = _default_snapshot,
    ) -> None:
        self.enabled = (
            settings.REALTIME_BROADCAST_ENABLED if enabled is None else enabled
        )
        self.prefix = prefix or settings.REALTIME_CHANNEL_PREFIX
        self._connection_factory = connection_factory
        self._snapshot_loader = snapshot_loader

    def channels_for(self, event: OrderEvent) -> List[str]:
        channels = [
            f"{self.prefix}:order-{event.aggregate_id}",
            f"{self.prefix}:admins",
        ]
        if event.baker_id:
            channels.append(f"{self.prefix}:baker-{event.baker_id}")
        return channels

    def build_message(self, event: OrderEvent) -> str:
        """Serialize ``event`` with the current order (``None`` once deleted)."""
        payload = asdict(event)
        order = None
        if not isinstance(event, OrderDeleted):
            order = self._snapshot_loader(event.aggregate_id)
        return json.dumps(
            {
                "type": event.broadcast_type,
                "orderId": event.aggregate_id,
                "orderNumber": event.order_number,
                "bakerId": event.baker_id,
                "actorId": event.actor_id,
                "actorEmail": event.actor_email,
                "timestamp": event.occurred_on,
                "updatedBy": {"id": event.actor_id, "email": event.actor_email},
                "order": order,
                "data": {
                    key: value
                    for key, value in payload.items()
                    if key not in _ENVELOPE_FIELDS
                },
            },
            cls=DjangoJSONEncoder,
        )

    def emit_order_update(self, event: OrderEvent) -> int:
        """Publish ``event`` on every interested channel; returns receiver count."""
        if not self.enabled:
            return 0
        message = self.build_message(event)
        connection = self._connection_factory()
        receivers = 0
        for channel in self.channels_for(event):
            receivers += connection.publish(channel, message)
        logger.debug(
            "broadcast.published",
            order_id=str(event.aggregate_id),
            type=event.broadcast_type,
            receivers=receivers,
        )
        return receivers
