"""Authenticated caller context threaded into every service operation."""

from __future__ import annotations

from dataclasses import dataclass

from habitledger.db.models import User


@dataclass(frozen=True)
class AuthContext:
    """The resolved caller of an operation."""

    user: User

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def plan(self) -> str:
        return self.user.plan or "free"

    def owns(self, entity: object) -> bool:
        """True when ``entity.user_id`` belongs to the caller."""
        return entity is not None and getattr(entity, "user_id", None) == self.user.id
