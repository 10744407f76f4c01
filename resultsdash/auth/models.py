from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SessionUser:
    """Signed-in user plus the bearer token issued by the backend at login."""

    id: str
    role: str  # admin|student
    access_token: str
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def public_view(self) -> dict:
        # Never expose the access token to API consumers.
        return {"id": self.id, "email": self.email, "name": self.name, "role": self.role}
