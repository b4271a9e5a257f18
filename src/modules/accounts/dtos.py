"""Account DTOs passed from the API layer to ``AccountService``."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, StringConstraints

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2)]
Phone = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Email = Annotated[
    str, StringConstraints(strip_whitespace=True, to_lower=True, min_length=3)
]


class ProfileDTO(BaseModel):
    """Fields a baker may change on their own profile."""

    model_config = ConfigDict(frozen=True)

    first_name: Name
    last_name: Name
    phone_number: Phone


class BakerDetailsDTO(ProfileDTO):
    """Admin-managed baker details: the profile plus the login email."""

    email: Email


class ChangePasswordDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_password: str
    new_password: str
