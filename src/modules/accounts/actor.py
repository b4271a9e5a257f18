"""The requesting actor as seen by the order domain.

Authentication happens upstream (SimpleJWT); the domain only ever receives an
``Actor`` and authorises against it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from modules.accounts.constants import Role


@dataclass(frozen=True)
class Actor:
    id: str
    role: str
    baker_id: Optional[str] = None
    email: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_baker(self) -> bool:
        return self.role == Role.BAKER

    @classmethod
    def from_user(cls, user: Any) -> Optional[Actor]:
        """Build an actor from an authenticated Django user.

        Superusers without an account act as admins.  Returns ``None`` when
        the user has no order-system role.
        """
        account = getattr(user, "account", None)
        if account is None:
            if getattr(user, "is_superuser", False):
                return cls(id=str(user.pk), role=Role.ADMIN, email=user.email)
            return None
        return cls(
            id=str(user.pk),
            role=account.role,
            baker_id=account.baker_id,
            email=user.email,
        )
