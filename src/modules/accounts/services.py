"""Account management use cases.

Admins create, edit, search and (de)activate baker accounts; every user
manages their own profile and password.  New bakers and admin password
resets receive a generated temporary password by email and are flagged
``is_first_login`` until they change it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

import structlog
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q, QuerySet
from django.utils.crypto import get_random_string

from modules.accounts.actor import Actor
from modules.accounts.constants import (
    SEARCH_LIMIT,
    SEARCH_MIN_LENGTH,
    TEMPORARY_PASSWORD_CHARS,
    TEMPORARY_PASSWORD_LENGTH,
    Role,
)
from modules.accounts.exceptions import (
    BakerNotFound,
    DuplicateAccount,
    InvalidCurrentPassword,
    InvalidSearchQuery,
)
from modules.accounts.models import Account
from modules.accounts.tasks import (
    send_account_created_email,
    send_password_reset_email,
)

if TYPE_CHECKING:
    from modules.accounts.dtos import BakerDetailsDTO, ChangePasswordDTO, ProfileDTO

logger = structlog.get_logger(__name__)

User = get_user_model()


def generate_temporary_password() -> str:
    return get_random_string(TEMPORARY_PASSWORD_LENGTH, TEMPORARY_PASSWORD_CHARS)


class AccountService:
    def __init__(
        self, password_generator: Callable[[], str] = generate_temporary_password
    ) -> None:
        self._password_generator = password_generator

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def bakers(self) -> QuerySet:
        """Baker accounts, newest first."""
        return (
            Account.objects.filter(role=Role.BAKER)
            .select_related("user")
            .order_by("-created_at", "-id")
        )

    def get_baker(self, account_id: Any) -> Account:
        try:
            account = self.bakers().filter(id=account_id).first()
        except (ValueError, ValidationError):
            account = None
        if account is None:
            raise BakerNotFound()
        return account

    def search_bakers(self, query: str) -> QuerySet:
        """Match names, email, phone number or baker id (case-insensitive)."""
        term = (query or "").strip()
        if len(term) < SEARCH_MIN_LENGTH:
            raise InvalidSearchQuery(
                f"Search query must be at least {SEARCH_MIN_LENGTH} characters."
            )
        return self.bakers().filter(
            Q(user__first_name__icontains=term)
            | Q(user__last_name__icontains=term)
            | Q(user__email__icontains=term)
            | Q(phone_number__icontains=term)
            | Q(baker_id__icontains=term)
        )[:SEARCH_LIMIT]

    def baker_stats(self) -> Dict[str, int]:
        counts = Account.objects.filter(role=Role.BAKER).aggregate(
            total_bakers=Count("id"),
            active_bakers=Count("id", filter=Q(user__is_active=True)),
            inactive_bakers=Count("id", filter=Q(user__is_active=False)),
            first_login_pending=Count("id", filter=Q(is_first_login=True)),
        )
        return {key: value or 0 for key, value in counts.items()}

    def profile(self, actor: Actor) -> Account:
        account = (
            Account.objects.select_related("user").filter(user_id=actor.id).first()
        )
        if account is None:
            raise BakerNotFound("Profile not found.")
        return account

    # ------------------------------------------------------------------
    # Admin commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_baker(self, actor: Actor, dto: BakerDetailsDTO) -> Account:
        """Create a baker with a temporary password and queue the welcome email."""
        self._ensure_unique(dto.email, dto.phone_number)
        password = self._password_generator()
        user = User.objects.create_user(
            username=dto.email,
            email=dto.email,
            password=password,
            first_name=dto.first_name,
            last_name=dto.last_name,
        )
        account = Account.objects.create(
            user=user,
            role=Role.BAKER,
            phone_number=dto.phone_number,
            is_first_login=True,
        )
        logger.info(
            "account.baker_created",
            baker_id=account.baker_id,
            created_by=actor.email,
        )
        transaction.on_commit(
            lambda: send_account_created_email.delay(
                user.email,
                account.baker_id,
                password,
                account.full_name,
                account.phone_number,
            )
        )
        return account

    @transaction.atomic
    def update_baker(
        self, actor: Actor, account_id: Any, dto: BakerDetailsDTO
    ) -> Account:
        account = self.get_baker(account_id)
        self._ensure_unique(dto.email, dto.phone_number, exclude=account)

        user = account.user
        if user.username == user.email:
            user.username = dto.email
        user.email = dto.email
        user.first_name = dto.first_name
        user.last_name = dto.last_name
        user.save(update_fields=["username", "email", "first_name", "last_name"])
        account.phone_number = dto.phone_number
        account.save(update_fields=["phone_number"])

        logger.info(
            "account.baker_updated",
            baker_id=account.baker_id,
            updated_by=actor.email,
        )
        return account

    @transaction.atomic
    def toggle_active(self, actor: Actor, account_id: Any) -> Account:
        account = self.get_baker(account_id)
        user = account.user
        user.is_active = not user.is_active
        user.save(update_fields=["is_active"])
        event = "activated" if user.is_active else "deactivated"
        logger.info(
            f"account.baker_{event}",
            baker_id=account.baker_id,
            changed_by=actor.email,
        )
        return account

    @transaction.atomic
    def reset_password(self, actor: Actor, account_id: Any) -> Account:
        account = self.get_baker(account_id)
        password = self._password_generator()
        account.user.set_password(password)
        account.user.save(update_fields=["password"])
        account.is_first_login = True
        account.save(update_fields=["is_first_login"])

        email = account.user.email
        transaction.on_commit(
            lambda: send_password_reset_email.delay(email, password)
        )
        logger.info(
            "account.password_reset",
            baker_id=account.baker_id,
            reset_by=actor.email,
        )
        return account

    # ------------------------------------------------------------------
    # Self-service
    # ------------------------------------------------------------------

    @transaction.atomic
    def update_profile(self, actor: Actor, dto: ProfileDTO) -> Account:
        account = self.profile(actor)
        self._ensure_unique(None, dto.phone_number, exclude=account)

        user = account.user
        user.first_name = dto.first_name
        user.last_name = dto.last_name
        user.save(update_fields=["first_name", "last_name"])
        account.phone_number = dto.phone_number
        account.save(update_fields=["phone_number"])
        logger.info("account.profile_updated", user_id=actor.id)
        return account

    @transaction.atomic
    def change_password(self, actor: Actor, dto: ChangePasswordDTO) -> Account:
        account = self.profile(actor)
        user = account.user
        if not user.check_password(dto.current_password):
            raise InvalidCurrentPassword()
        user.set_password(dto.new_password)
        user.save(update_fields=["password"])
        account.is_first_login = False
        account.save(update_fields=["is_first_login"])
        logger.info("account.password_changed", user_id=actor.id)
        return account

    def _ensure_unique(
        self,
        email: Optional[str],
        phone_number: str,
        exclude: Optional[Account] = None,
    ) -> None:
        users = User.objects.all()
        accounts = Account.objects.all()
        if exclude is not None:
            users = users.exclude(pk=exclude.user_id)
            accounts = accounts.exclude(pk=exclude.pk)
        if email and users.filter(
            Q(email__iexact=email) | Q(username__iexact=email)
        ).exists():
            logger.warning("account.duplicate_email")
            raise DuplicateAccount("Email address already exists.", field="email")
        if accounts.filter(phone_number=phone_number).exists():
            logger.warning("account.duplicate_phone")
            raise DuplicateAccount(
                "Phone number already exists.", field="phone_number"
            )
