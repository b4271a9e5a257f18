"""Account model: attaches an order-system role to a Django user.

Profile details (name, email, active flag) live on the Django user; the
account adds the phone number and the first-login flag.

Bakers receive a sequential ``baker_id`` (``B001``, ``B002``, ...) on first
save.  The id is the prefix of every order number the baker owns, so it is
never reassigned.
"""

from __future__ import annotations

from typing import Any

import structlog
from django.conf import settings
from django.db import models

from modules.accounts.constants import (
    BAKER_ID_DIGITS,
    BAKER_ID_PREFIX,
    PHONE_MAX_LENGTH,
    Role,
)
from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class Account(BaseModel):
    user: models.OneToOneField = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="account",
    )
    role: models.CharField = models.CharField(max_length=10, choices=Role.choices)
    baker_id: models.CharField = models.CharField(
        max_length=20,
        unique=True,
        null=True,
        blank=True,
    )
    phone_number: models.CharField = models.CharField(
        max_length=PHONE_MAX_LENGTH,
        unique=True,
        null=True,
        blank=True,
    )
    # Set while the user still holds an emailed temporary password.
    is_first_login: models.BooleanField = models.BooleanField(default=False)

    class Meta:
        db_table = "accounts"
        ordering = ["created_at"]

    @property
    def full_name(self) -> str:
        return self.user.get_full_name()

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_baker(self) -> bool:
        return self.role == Role.BAKER

    @staticmethod
    def next_baker_id() -> str:
        """Return the id following the most recently created baker's."""
        last = (
            Account.objects.filter(role=Role.BAKER, baker_id__isnull=False)
            .order_by("-created_at", "-id")
            .values_list("baker_id", flat=True)
            .first()
        )
        next_number = 1
        if last:
            try:
                next_number = int(last[len(BAKER_ID_PREFIX) :]) + 1
            except ValueError:
                logger.warning("account.baker_id_unparseable", baker_id=last)
                next_number = Account.objects.filter(role=Role.BAKER).count() + 1
        return f"{BAKER_ID_PREFIX}{next_number:0{BAKER_ID_DIGITS}d}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.role == Role.BAKER and not self.baker_id:
            self.baker_id = self.next_baker_id()
        if self.baker_id:
            self.baker_id = self.baker_id.upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.user} ({self.role})"
