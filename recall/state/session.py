"""
Recall — Session Context

What the view controller knows about the signed-in user. Built from the
auth layer (JWT claims or a User row) and handed to every transition; the
controller never reads a global.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


class Capability(str, Enum):
    """Optional feature areas granted per user. Admins hold all of them."""
    PROOFREADING = "proofreading"
    SPELLING = "spelling"
    LEARNING_HUB = "learning_hub"


CAPABILITY_LABELS = {
    Capability.PROOFREADING: "Proofreading Exercise",
    Capability.SPELLING: "Spelling Practice",
    Capability.LEARNING_HUB: "Integrated Learning Hub",
}


@dataclass(frozen=True)
class UserSession:
    id: str
    username: str = ""
    role: Role = Role.USER
    can_access_proofreading: bool = False
    can_access_spelling: bool = False
    can_access_learning_hub: bool = False
    force_password_change: bool = False
    display_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def can_access(self, capability: Capability) -> bool:
        if self.is_admin:
            return True
        if capability == Capability.PROOFREADING:
            return self.can_access_proofreading
        if capability == Capability.SPELLING:
            return self.can_access_spelling
        if capability == Capability.LEARNING_HUB:
            return self.can_access_learning_hub
        return False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role.value,
            "can_access_proofreading": self.can_access_proofreading,
            "can_access_spelling": self.can_access_spelling,
            "can_access_learning_hub": self.can_access_learning_hub,
            "force_password_change": self.force_password_change,
            "display_name": self.display_name,
        }

    @classmethod
    def from_claims(cls, claims: Any) -> "UserSession":
        """
        Build from a mapping (JWT claims, JSON) or any object with the same
        attribute names (a User ORM row). JWT claims carry the id in "sub".
        """
        if isinstance(claims, dict):
            get = claims.get
            user_id = claims.get("id") or claims.get("sub")
        else:
            def get(name, default=None):
                return getattr(claims, name, default)
            user_id = claims.id

        return cls(
            id=str(user_id),
            username=get("username", "") or "",
            role=Role(get("role", "user") or "user"),
            can_access_proofreading=bool(get("can_access_proofreading", False)),
            can_access_spelling=bool(get("can_access_spelling", False)),
            can_access_learning_hub=bool(get("can_access_learning_hub", False)),
            force_password_change=bool(get("force_password_change", False)),
            display_name=get("display_name"),
        )


@dataclass(frozen=True)
class SessionContext:
    """Session provider output: the user (None when signed out) plus a loading flag."""
    user: Optional[UserSession] = None
    loading: bool = False

    @property
    def authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin

    def can_access(self, capability: Capability) -> bool:
        return self.user is not None and self.user.can_access(capability)


SIGNED_OUT = SessionContext()
