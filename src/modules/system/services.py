"""Reads and admin updates of the system settings row."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.accounts.actor import Actor
from modules.system.models import SystemSettings

logger = structlog.get_logger(__name__)


class SystemSettingsService:
    def current(self) -> SystemSettings:
        return SystemSettings.load()

    def describe(self, actor: Actor) -> Dict[str, Any]:
        """Settings as shown to ``actor``; audit fields and notes are admin-only."""
        stored = self.current()
        international: Dict[str, Any] = {
            "enabled": stored.international_enabled,
            "supported_countries": list(stored.supported_countries),
        }
        data: Dict[str, Any] = {
            "international_addresses": international,
            "updated_at": stored.updated_at,
        }
        if actor.is_admin:
            international.update(
                {
                    "notes": stored.notes,
                    "last_modified_by": stored.last_modified_by_id,
                    "last_modified_at": stored.last_modified_at,
                }
            )
            data["created_at"] = stored.created_at
        return data

    def international_status(self) -> Dict[str, Any]:
        stored = self.current()
        return {
            "enabled": stored.international_enabled,
            "supported_countries_count": len(stored.supported_countries),
            "last_modified": stored.last_modified_at,
        }

    @transaction.atomic
    def set_international(
        self, actor: Actor, enabled: bool, notes: Optional[str] = None
    ) -> SystemSettings:
        stored = SystemSettings.objects.select_for_update().get(
            pk=self.current().pk
        )
        stored.international_enabled = enabled
        if notes is not None:
            stored.notes = notes
        self._touch(stored, actor)
        logger.info(
            "settings.international_updated",
            enabled=enabled,
            modified_by=actor.email,
        )
        return stored

    @transaction.atomic
    def set_supported_countries(
        self, actor: Actor, countries: List[str]
    ) -> SystemSettings:
        stored = SystemSettings.objects.select_for_update().get(
            pk=self.current().pk
        )
        stored.supported_countries = countries
        self._touch(stored, actor)
        logger.info(
            "settings.countries_updated",
            count=len(countries),
            modified_by=actor.email,
        )
        return stored

    @transaction.atomic
    def reset(self, actor: Actor) -> SystemSettings:
        """Drop the row so it is recreated from the Django settings."""
        SystemSettings.objects.all().delete()
        stored = self.current()
        logger.warning("settings.reset", reset_by=actor.email)
        return stored

    def _touch(self, stored: SystemSettings, actor: Actor) -> None:
        stored.last_modified_by_id = actor.id
        stored.last_modified_at = timezone.now()
        stored.save()
