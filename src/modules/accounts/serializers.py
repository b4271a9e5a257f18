"""Account DRF serializers.

Input serializers carry the field rules (name length, phone format, email
syntax); uniqueness is checked by ``AccountService``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.accounts.constants import (
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    PASSWORD_MIN_LENGTH,
    PHONE_PATTERN,
)
from modules.accounts.models import Account

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


def _name_field(label: str) -> serializers.CharField:
    length_message = (
        f"{label} must be between {NAME_MIN_LENGTH} and "
        f"{NAME_MAX_LENGTH} characters."
    )
    return serializers.CharField(
        min_length=NAME_MIN_LENGTH,
        max_length=NAME_MAX_LENGTH,
        error_messages={"min_length": length_message, "max_length": length_message},
    )


class ProfileSerializer(serializers.Serializer):
    first_name = _name_field("First name")
    last_name = _name_field("Last name")
    phone_number = serializers.RegexField(
        PHONE_PATTERN,
        error_messages={
            "invalid": "Please enter a valid phone number (10-15 digits)."
        },
    )


class BakerDetailsSerializer(ProfileSerializer):
    email = serializers.EmailField(
        error_messages={"invalid": "Please enter a valid email address."}
    )


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(trim_whitespace=False)
    new_password = serializers.CharField(
        min_length=PASSWORD_MIN_LENGTH, trim_whitespace=False
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class AccountSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(source="user.email", read_only=True)
    first_name = serializers.CharField(source="user.first_name", read_only=True)
    last_name = serializers.CharField(source="user.last_name", read_only=True)
    full_name = serializers.CharField(read_only=True)
    is_active = serializers.BooleanField(source="user.is_active", read_only=True)

    class Meta:
        model = Account
        fields = [
            "id",
            "baker_id",
            "role",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "phone_number",
            "is_active",
            "is_first_login",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
