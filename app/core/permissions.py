"""
Role names and the capability table.

Roles are a closed set. Each role maps to the capabilities it grants; a
request resolves its role set into a frozen permission set once, and route
guards check capabilities instead of comparing role strings.
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, List


class RoleName(str, Enum):
    ADMIN = "admin"
    BOTTLECOP = "bottlecop"
    CONSOLE = "console"
    OBSERVER = "observer"
    ANALYST = "analyst"
    SAMPLER = "sampler"


class Capability(str, Enum):
    VIEW_DASHBOARD = "view_dashboard"
    VIEW_CASTS = "view_casts"
    LOG_CASTS = "log_casts"
    RECORD_SAMPLES = "record_samples"
    MANAGE_BOTTLES = "manage_bottles"
    MANAGE_SAMPLING_SESSIONS = "manage_sampling_sessions"
    MANAGE_REFERENCE_DATA = "manage_reference_data"
    MANAGE_USERS = "manage_users"


_BASE = {Capability.VIEW_DASHBOARD, Capability.VIEW_CASTS}

ROLE_CAPABILITIES: Dict[RoleName, FrozenSet[Capability]] = {
    # admin sees every action in the UI
    RoleName.ADMIN: frozenset(Capability),
    RoleName.CONSOLE: frozenset(_BASE | {Capability.LOG_CASTS, Capability.RECORD_SAMPLES}),
    RoleName.OBSERVER: frozenset(_BASE | {Capability.LOG_CASTS}),
    RoleName.BOTTLECOP: frozenset(
        _BASE | {
            Capability.RECORD_SAMPLES,
            Capability.MANAGE_BOTTLES,
            Capability.MANAGE_SAMPLING_SESSIONS,
        }
    ),
    RoleName.SAMPLER: frozenset(_BASE | {Capability.RECORD_SAMPLES, Capability.MANAGE_BOTTLES}),
    RoleName.ANALYST: frozenset(_BASE),
}


def permissions_for(roles: Iterable[RoleName]) -> FrozenSet[Capability]:
    """Union of the capabilities granted by each role."""
    granted = set()
    for role in roles:
        granted |= ROLE_CAPABILITIES.get(RoleName(role), frozenset())
    return frozenset(granted)


# (capability, title, description, path) in display order
QUICK_ACTIONS = [
    (Capability.LOG_CASTS, "New CTD Cast", "Start logging a new CTD cast operation", "/casts/"),
    (Capability.MANAGE_BOTTLES, "Sample Management", "Track and manage water samples", "/sampling/"),
    (Capability.MANAGE_USERS, "User Management", "Manage team members and roles", "/users/"),
    (Capability.MANAGE_REFERENCE_DATA, "System Settings", "Configure ships, stations, and equipment", "/reference/"),
]


def build_navigation(permissions: Iterable[Capability]) -> List[dict]:
    """Quick actions visible for a permission set."""
    allowed = set(permissions)
    return [
        {"title": title, "description": description, "path": path}
        for capability, title, description, path in QUICK_ACTIONS
        if capability in allowed
    ]
