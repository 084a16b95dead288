# storefront/domain/caller.py
from dataclasses import dataclass

from storefront.domain.errors import ForbiddenError

ADMIN_ROLE = "admin"
USER_ROLE = "user"


@dataclass(frozen=True)
class Caller:
    """The authenticated user a service operation runs on behalf of."""

    user_id: str
    role: str = USER_ROLE
    email: str | None = None
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def owns(self, owner_id: str) -> bool:
        return self.is_admin or str(owner_id) == str(self.user_id)

    def require_admin(self) -> None:
        if not self.is_admin:
            raise ForbiddenError(f"User role {self.role} is not authorized to access this route")
