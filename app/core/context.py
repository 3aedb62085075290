from dataclasses import dataclass, field
from typing import FrozenSet, List

from app.core.permissions import Capability, RoleName, build_navigation


@dataclass
class RequestContext:
    """Identity and pending user-facing messages for one request."""

    user_id: int
    username: str
    full_name: str
    roles: FrozenSet[RoleName]
    permissions: FrozenSet[Capability]
    messages: List[dict] = field(default_factory=list)

    def has_role(self, role: RoleName) -> bool:
        try:
            return RoleName(role) in self.roles
        except ValueError:
            return False

    def can(self, capability: Capability) -> bool:
        return capability in self.permissions

    def flash(self, message: str, level: str = "success") -> None:
        self.messages.append({"level": level, "message": message})

    def navigation(self) -> List[dict]:
        return build_navigation(self.permissions)

    def as_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "full_name": self.full_name,
            "roles": sorted(role.value for role in self.roles),
            "permissions": sorted(cap.value for cap in self.permissions),
        }
