"""Account emails: welcome message and password resets.

Like the order notifications, delivery is best-effort and reported as a
boolean; the account change that triggered the email is already committed.
"""

from __future__ import annotations

import smtplib
from typing import Any, Dict

import structlog
from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string
from django.utils.html import strip_tags

logger = structlog.get_logger(__name__)


def _deliver(
    template: str,
    subject: str,
    recipient: str,
    context: Dict[str, Any],
    log_event: str,
) -> bool:
    html = render_to_string(
        f"accounts/emails/{template}",
        {"signature": settings.EMAIL_SIGNATURE, **context},
    )
    log = logger.bind(recipient=recipient, baker_id=context.get("baker_id"))
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


@shared_task(name="accounts.send_account_created_email")
def send_account_created_email(
    email: str,
    baker_id: str,
    temporary_password: str,
    full_name: str = "",
    phone_number: str = "",
) -> bool:
    return _deliver(
        "account_created.html",
        "Welcome to the Cookie Cutter Ordering System",
        email,
        {
            "email": email,
            "baker_id": baker_id,
            "temporary_password": temporary_password,
            "full_name": full_name,
            "phone_number": phone_number,
        },
        "email.account_created",
    )


@shared_task(name="accounts.send_password_reset_email")
def send_password_reset_email(email: str, temporary_password: str) -> bool:
    return _deliver(
        "password_reset.html",
        "Password Reset - Cookie Cutter Ordering System",
        email,
        {"email": email, "temporary_password": temporary_password},
        "email.password_reset",
    )
