"""Order list filters.

Pickup filters read the embedded ``pickup_schedule`` document.  Its ``date``
(``YYYY-MM-DD``) and ``time`` (``HH:MM``) are stored as ISO strings, so range
comparisons are plain string comparisons on JSON key lookups.
"""

from __future__ import annotations

from datetime import timedelta

import django_filters
from django.db.models import Q
from django.utils import timezone

from modules.orders.constants import (
    DeliveryMethod,
    PaymentMethod,
    Stage,
    UpdateRequestStatus,
)
from modules.orders.models import Order

PICKUP_STATUS_CHOICES = (
    ("today", "Today"),
    ("tomorrow", "Tomorrow"),
    ("overdue", "Overdue"),
    ("upcoming", "Upcoming"),
    ("this-week", "This week"),
)
class OrderFilter(django_filters.FilterSet):
    stage = django_filters.ChoiceFilter(choices=Stage.choices)
    baker_id = django_filters.CharFilter(field_name="baker_id", lookup_expr="iexact")
    baker_email = django_filters.CharFilter(
        field_name="baker_email", lookup_expr="icontains"
    )
    date_from = django_filters.DateFilter(
        field_name="date_required", lookup_expr="gte"
    )
    date_to = django_filters.DateFilter(field_name="date_required", lookup_expr="lte")
    delivery_method = django_filters.ChoiceFilter(choices=DeliveryMethod.choices)
    payment_method = django_filters.ChoiceFilter(choices=PaymentMethod.choices)
    pickup_date_from = django_filters.DateFilter(method="filter_pickup_date_from")
    pickup_date_to = django_filters.DateFilter(method="filter_pickup_date_to")
    pickup_status = django_filters.ChoiceFilter(
        choices=PICKUP_STATUS_CHOICES, method="filter_pickup_status"
    )
    pending_updates = django_filters.BooleanFilter(method="filter_pending_updates")

    class Meta:
        model = Order
        fields = [
            "stage",
            "baker_id",
            "baker_email",
            "date_from",
            "date_to",
            "delivery_method",
            "payment_method",
            "pickup_date_from",
            "pickup_date_to",
            "pickup_status",
            "pending_updates",
        ]

    def filter_pickup_date_from(self, queryset, name, value):
        return queryset.filter(pickup_schedule__date__gte=value.isoformat())

    def filter_pickup_date_to(self, queryset, name, value):
        return queryset.filter(pickup_schedule__date__lte=value.isoformat())

    def filter_pickup_status(self, queryset, name, value):
        now = timezone.localtime()
        today = now.date()

        if value in ("today", "tomorrow"):
            day = today if value == "today" else today + timedelta(days=1)
            return queryset.filter(pickup_schedule__date=day.isoformat())

        if value == "this-week":
            # Weeks run Sunday to Saturday.
            start = today - timedelta(days=(today.weekday() + 1) % 7)
            end = start + timedelta(days=6)
            return queryset.filter(
                pickup_schedule__date__gte=start.isoformat(),
                pickup_schedule__date__lte=end.isoformat(),
            )

        day, clock = today.isoformat(), now.strftime("%H:%M")
        if value == "overdue":
            return queryset.filter(
                Q(pickup_schedule__date__lt=day)
                | Q(pickup_schedule__date=day, pickup_schedule__time__lt=clock)
            )
        return queryset.filter(
            Q(pickup_schedule__date__gt=day)
            | Q(pickup_schedule__date=day, pickup_schedule__time__gt=clock)
        )

    def filter_pending_updates(self, queryset, name, value):
        if value:
            return queryset.filter(update_request__status=UpdateRequestStatus.PENDING)
        return queryset.exclude(update_request__status=UpdateRequestStatus.PENDING)
