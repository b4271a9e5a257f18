from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.accounts.constants import Role
from modules.accounts.models import Account
from modules.orders.constants import (
    PRICED_STAGES,
    ItemType,
    MeasurementUnit,
    Stage,
)
from modules.orders.models import Order, OrderItem, OrderStageHistory


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=30)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        admin = self._seed_admin()
        bakers = self._seed_bakers()
        orders_created = self._seed_orders(admin, bakers, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"bakers={len(bakers)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_admin(self):
        User = get_user_model()
        admin, created = User.objects.get_or_create(
            username="admin", defaults={"email": "admin@cookiecutter.com"}
        )
        if created:
            admin.set_password("admin123")
            admin.save()
            Account.objects.create(user=admin, role=Role.ADMIN)
        return admin

    def _seed_bakers(self) -> list[Account]:
        self.stdout.write("Creating bakers...")
        User = get_user_model()
        bakers: list[Account] = []
        for username in ("amelia", "oliver", "isla"):
            user, created = User.objects.get_or_create(
                username=username, defaults={"email": f"{username}@example.com"}
            )
            if created:
                user.set_password(f"{username}123")
                user.save()
            account, _ = Account.objects.get_or_create(
                user=user, defaults={"role": Role.BAKER}
            )
            bakers.append(account)
        self.stdout.write(self.style.SUCCESS("Creating bakers... Done!"))
        return bakers

    def _seed_orders(self, admin, bakers: list[Account], count: int) -> int:
        self.stdout.write("Creating orders...")
        stages = list(Stage.values)
        for _ in range(count):
            baker = random.choice(bakers)
            stage = random.choice(stages)
            order = Order.objects.create(
                baker_id=baker.baker_id,
                baker_email=baker.user.email,
                date_required=timezone.localdate()
                + timedelta(days=random.randint(3, 45)),
                stage=stage,
                price=(
                    Decimal(random.randint(25, 180))
                    if stage in PRICED_STAGES
                    else None
                ),
            )
            for _ in range(random.randint(1, 3)):
                OrderItem.objects.create(
                    order=order,
                    type=random.choice(ItemType.values),
                    measurement_value=Decimal(random.randint(4, 12)),
                    measurement_unit=MeasurementUnit.CM,
                    inspiration_images=[
                        {
                            "url": f"https://example.com/seed/{order.order_number}.png",
                            "key": f"seed/{order.order_number}.png",
                            "uploadedAt": timezone.now().isoformat(),
                        }
                    ],
                )
            if stage != Stage.DRAFT:
                OrderStageHistory.objects.create(
                    order=order,
                    stage=stage,
                    changed_by=admin,
                    comments="Seeded",
                )
        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return count
