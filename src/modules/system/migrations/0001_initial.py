import django.db.models.deletion
import uuid6
from django.conf import settings
from django.db import migrations, models

import modules.system.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="SystemSettings",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "key",
                    models.CharField(
                        default="system-settings",
                        editable=False,
                        max_length=32,
                        unique=True,
                    ),
                ),
                ("international_enabled", models.BooleanField(default=False)),
                (
                    "supported_countries",
                    models.JSONField(
                        default=modules.system.models.default_supported_countries
                    ),
                ),
                (
                    "notes",
                    models.TextField(
                        blank=True,
                        default="International delivery settings controlled by admin",
                        max_length=1000,
                    ),
                ),
                (
                    "last_modified_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "last_modified_at",
                    models.DateTimeField(blank=True, null=True),
                ),
            ],
            options={
                "db_table": "system_settings",
                "verbose_name_plural": "system settings",
            },
        ),
    ]
