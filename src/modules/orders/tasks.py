"""Asynchronous order notifications.

Each task renders a Django template and sends it through ``django.core.mail``.
Delivery is best-effort: a task reports success as a boolean and logs the
failure instead of raising, so a broken mail server never surfaces to the
request that triggered the notification.
"""

from __future__ import annotations

import smtplib
from typing import Any, Dict, Optional

import structlog
from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string
from django.utils.html import strip_tags

from modules.orders.constants import Stage

logger = structlog.get_logger(__name__)

STAGE_MESSAGES = {
    Stage.UNDER_REVIEW: "Your order is now under review by our admin team.",
    Stage.REQUIRES_APPROVAL: (
        "Your order requires your approval. Please review the pricing and details."
    ),
    Stage.REQUESTED_CHANGES: (
        "Changes have been requested for your order. Please review the comments."
    ),
    Stage.READY_TO_PRINT: "Great news! Your order is ready to print.",
    Stage.PRINTING: "Your order is currently being printed.",
    Stage.COMPLETED: "Your order has been completed and is ready for pickup/delivery.",
}
DEFAULT_STAGE_MESSAGE = "Your order status has been updated."


def _deliver(
    template: str,
    subject: str,
    recipient: str,
    context: Dict[str, Any],
    log_event: str,
) -> bool:
    html = render_to_string(
        f"orders/emails/{template}",
        {"signature": settings.EMAIL_SIGNATURE, **context},
    )
    log = logger.bind(recipient=recipient, order_number=context.get("order_number"))
    try:
        send_mail(
            subject,
            strip_tags(html),
            settings.DEFAULT_FROM_EMAIL,
            [recipient],
            html_message=html,
        )
    except (smtplib.SMTPException, OSError):
        log.exception(f"{log_event}_failed")
        return False
    log.info(f"{log_event}_sent")
    return True


@shared_task(name="orders.send_order_stage_change_email")
def send_order_stage_change_email(
    baker_email: str, order_number: str, new_stage: str, comments: str = ""
) -> bool:
    return _deliver(
        "stage_changed.html",
        f"Order Update - {order_number}",
        baker_email,
        {
            "order_number": order_number,
            "new_stage": new_stage,
            "stage_message": STAGE_MESSAGES.get(new_stage, DEFAULT_STAGE_MESSAGE),
            "comments": comments,
        },
        "email.stage_change",
    )


@shared_task(name="orders.send_update_request_notification")
def send_update_request_notification(
    baker_email: str, order_number: str, reason: str
) -> bool:
    """Tell the admin mailbox that a baker wants to reopen confirmed details."""
    return _deliver(
        "update_requested.html",
        f"Update Request - Order {order_number}",
        settings.ADMIN_NOTIFICATION_EMAIL,
        {"order_number": order_number, "baker_email": baker_email, "reason": reason},
        "email.update_request",
    )


@shared_task(name="orders.send_update_request_response_email")
def send_update_request_response_email(
    baker_email: str, order_number: str, action: str, admin_response: str = ""
) -> bool:
    outcome = "Approved" if action == "approve" else "Rejected"
    return _deliver(
        "update_resolved.html",
        f"Update Request {outcome} - Order {order_number}",
        baker_email,
        {
            "order_number": order_number,
            "outcome": outcome,
            "approved": action == "approve",
            "admin_response": admin_response,
        },
        "email.update_response",
    )


@shared_task(name="orders.send_completion_details_confirmed_email")
def send_completion_details_confirmed_email(
    baker_email: str,
    order_number: str,
    delivery_method: str,
    payment_method: str,
    pickup_schedule: Optional[Dict[str, Any]] = None,
    delivery_address: Optional[Dict[str, Any]] = None,
) -> bool:
    return _deliver(
        "completion_confirmed.html",
        f"Collection & Payment Details Confirmed - {order_number}",
        baker_email,
        {
            "order_number": order_number,
            "delivery_method": delivery_method,
            "payment_method": payment_method,
            "pickup_schedule": pickup_schedule,
            "delivery_address": delivery_address,
        },
        "email.completion_confirmed",
    )
