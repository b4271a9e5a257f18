from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.events import (
            ORDER_EVENTS,
            CompletionDetailsConfirmed,
            CompletionUpdateRequested,
            CompletionUpdateResolved,
            OrderStageChanged,
        )
        from modules.orders.handlers import (
            completion_confirmed_email_handler,
            realtime_broadcast_handler,
            stage_change_email_handler,
            update_request_email_handler,
            update_resolved_email_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderStageChanged, stage_change_email_handler)
        event_bus.subscribe(
            CompletionDetailsConfirmed, completion_confirmed_email_handler
        )
        event_bus.subscribe(CompletionUpdateRequested, update_request_email_handler)
        event_bus.subscribe(CompletionUpdateResolved, update_resolved_email_handler)
        for event_class in ORDER_EVENTS:
            event_bus.subscribe(event_class, realtime_broadcast_handler)
