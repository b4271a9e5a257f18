"""Admin-editable runtime settings.

A single ``SystemSettings`` row (``key="system-settings"``) holds the
delivery-address configuration.  It is created on first read from the Django
settings, so a fresh database behaves exactly like the static configuration
until an admin changes something.
"""

from __future__ import annotations

from typing import List

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel

SINGLETON_KEY = "system-settings"
NOTES_MAX_LENGTH = 1000
DEFAULT_NOTES = "International delivery settings controlled by admin"


def default_supported_countries() -> List[str]:
    return list(settings.SUPPORTED_COUNTRIES)


class SystemSettings(BaseModel):
    key: models.CharField = models.CharField(
        max_length=32, unique=True, default=SINGLETON_KEY, editable=False
    )
    international_enabled: models.BooleanField = models.BooleanField(default=False)
    supported_countries: models.JSONField = models.JSONField(
        default=default_supported_countries
    )
    notes: models.TextField = models.TextField(
        max_length=NOTES_MAX_LENGTH, blank=True, default=DEFAULT_NOTES
    )
    last_modified_by: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    last_modified_at: models.DateTimeField = models.DateTimeField(
        null=True, blank=True
    )

    class Meta:
        db_table = "system_settings"
        verbose_name_plural = "system settings"

    @classmethod
    def load(cls) -> SystemSettings:
        stored, _ = cls.objects.get_or_create(
            key=SINGLETON_KEY,
            defaults={
                "international_enabled": settings.INTERNATIONAL_ADDRESSES_ENABLED
            },
        )
        return stored

    def __str__(self) -> str:
        state = "enabled" if self.international_enabled else "disabled"
        return f"System settings (international {state})"
