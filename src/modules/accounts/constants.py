"""Account roles and baker id format."""

from django.db import models


class Role(models.TextChoices):
    ADMIN = "admin", "Admin"
    BAKER = "baker", "Baker"


BAKER_ID_PREFIX = "B"
BAKER_ID_DIGITS = 3

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
# Optional leading "+", then 10-15 digits, spaces, dashes or parentheses.
PHONE_PATTERN = r"^\+?[\d\s\-()]{10,15}$"
PHONE_MAX_LENGTH = 20

TEMPORARY_PASSWORD_LENGTH = 12
TEMPORARY_PASSWORD_CHARS = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789!@#$%^&*"
)
PASSWORD_MIN_LENGTH = 6

SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT = 20
