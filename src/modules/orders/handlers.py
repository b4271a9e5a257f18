"""Event handlers for Orders domain events.

Handlers run after commit.  Email goes out through Celery tasks and realtime
updates through the Redis broadcaster; both are best-effort, so a failing
handler logs and returns instead of raising into the request.
"""

from __future__ import annotations

from typing import Optional

import structlog

from modules.orders.broadcast import RealtimeBroadcaster
from modules.orders.events import (
    CompletionDetailsConfirmed,
    CompletionUpdateRequested,
    CompletionUpdateResolved,
    OrderEvent,
    OrderStageChanged,
)
from modules.orders.tasks import (
    send_completion_details_confirmed_email,
    send_order_stage_change_email,
    send_update_request_notification,
    send_update_request_response_email,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class BestEffortHandler(IEventHandler[OrderEvent]):
    def handle(self, event: OrderEvent) -> None:
        try:
            self.process(event)
        except Exception:
            # Notification failures never undo a committed change.
            logger.exception(
                "order.side_effect_failed",
                handler=type(self).__name__,
                event_name=event.event_name,
                order_id=str(event.aggregate_id),
            )

    def process(self, event: OrderEvent) -> None:
        raise NotImplementedError


class StageChangeEmailHandler(BestEffortHandler):
    def process(self, event: OrderStageChanged) -> None:
        send_order_stage_change_email.delay(
            event.baker_email, event.order_number, event.new_stage, event.comments
        )
        logger.info(
            "order.stage_change_email_queued",
            order_id=str(event.aggregate_id),
            new_stage=event.new_stage,
        )


class CompletionConfirmedEmailHandler(BestEffortHandler):
    def process(self, event: CompletionDetailsConfirmed) -> None:
        send_completion_details_confirmed_email.delay(
            event.baker_email,
            event.order_number,
            event.delivery_method,
            event.payment_method,
            event.pickup_schedule,
            event.delivery_address,
        )


class UpdateRequestEmailHandler(BestEffortHandler):
    def process(self, event: CompletionUpdateRequested) -> None:
        send_update_request_notification.delay(
            event.baker_email, event.order_number, event.reason
        )


class UpdateResolvedEmailHandler(BestEffortHandler):
    def process(self, event: CompletionUpdateResolved) -> None:
        send_update_request_response_email.delay(
            event.baker_email, event.order_number, event.action, event.admin_response
        )


class RealtimeBroadcastHandler(BestEffortHandler):
    def __init__(self, broadcaster: Optional[RealtimeBroadcaster] = None) -> None:
        self._broadcaster = broadcaster

    @property
    def broadcaster(self) -> RealtimeBroadcaster:
        # Built lazily so settings overrides in tests are honoured.
        if self._broadcaster is None:
            self._broadcaster = RealtimeBroadcaster()
        return self._broadcaster

    def process(self, event: OrderEvent) -> None:
        self.broadcaster.emit_order_update(event)


stage_change_email_handler = StageChangeEmailHandler()
completion_confirmed_email_handler = CompletionConfirmedEmailHandler()
update_request_email_handler = UpdateRequestEmailHandler()
update_resolved_email_handler = UpdateResolvedEmailHandler()
realtime_broadcast_handler = RealtimeBroadcastHandler()
