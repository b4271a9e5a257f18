import django.core.validators
import django.db.models.deletion
import django.utils.timezone
import uuid6
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

STAGE_CHOICES = [
    ("Draft", "Draft"),
    ("Submitted", "Submitted"),
    ("Under Review", "Under Review"),
    ("Requires Approval", "Requires Approval"),
    ("Requested Changes", "Requested Changes"),
    ("Ready to Print", "Ready to Print"),
    ("Printing", "Printing"),
    ("Completed", "Completed"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
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
                    "order_number",
                    models.CharField(editable=False, max_length=40, unique=True),
                ),
                ("baker_id", models.CharField(db_index=True, max_length=20)),
                ("baker_email", models.EmailField(max_length=254)),
                ("date_required", models.DateField()),
                (
                    "stage",
                    models.CharField(
                        choices=STAGE_CHOICES, default="Draft", max_length=20
                    ),
                ),
                (
                    "price",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=10,
                        null=True,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0"))
                        ],
                    ),
                ),
                (
                    "delivery_method",
                    models.CharField(
                        blank=True,
                        choices=[("Pickup", "Pickup"), ("Delivery", "Delivery")],
                        max_length=10,
                        null=True,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=[("Cash", "Cash"), ("Card", "Card")],
                        max_length=10,
                        null=True,
                    ),
                ),
                ("pickup_schedule", models.JSONField(blank=True, null=True)),
                ("delivery_address", models.JSONField(blank=True, null=True)),
                ("details_confirmed", models.BooleanField(default=False)),
                (
                    "details_confirmed_at",
                    models.DateTimeField(blank=True, null=True),
                ),
                ("version", models.PositiveIntegerField(default=0)),
                (
                    "details_confirmed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "orders",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["stage"], name="orders_stage_idx"),
                    models.Index(fields=["-created_at"], name="orders_created_idx"),
                    models.Index(
                        fields=["baker_id", "-created_at"],
                        name="orders_baker_created_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
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
                    "type",
                    models.CharField(
                        choices=[
                            ("Cutter", "Cutter"),
                            ("Stamp", "Stamp"),
                            ("Stamp & Cutter", "Stamp & Cutter"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "measurement_value",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=7,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0.1")),
                            django.core.validators.MaxValueValidator(Decimal("1000")),
                        ],
                    ),
                ),
                (
                    "measurement_unit",
                    models.CharField(
                        choices=[("cm", "cm"), ("mm", "mm")],
                        default="cm",
                        max_length=2,
                    ),
                ),
                ("inspiration_images", models.JSONField(blank=True, default=list)),
                ("preview_images", models.JSONField(blank=True, default=list)),
                (
                    "additional_comments",
                    models.TextField(blank=True, default="", max_length=1000),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "db_table": "order_items",
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="OrderStageHistory",
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
                ("stage", models.CharField(choices=STAGE_CHOICES, max_length=20)),
                (
                    "changed_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                ("comments", models.TextField(blank=True, default="")),
                (
                    "changed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stage_history",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "db_table": "order_stage_history",
                "ordering": ["changed_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["order", "changed_at"], name="osh_order_changed_idx"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CompletionUpdateRequest",
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
                    "requested_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                ("requested_changes", models.JSONField(blank=True, default=dict)),
                ("reason", models.TextField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                        ],
                        default="pending",
                        max_length=10,
                    ),
                ),
                ("admin_response", models.TextField(blank=True, default="")),
                ("responded_at", models.DateTimeField(blank=True, null=True)),
                (
                    "order",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="update_request",
                        to="orders.order",
                    ),
                ),
                (
                    "requested_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "responded_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "order_update_requests",
                "indexes": [
                    models.Index(fields=["status"], name="our_status_idx"),
                ],
            },
        ),
    ]
