"""
Identity & Access Service
-------------------------
Authenticates users, resolves their roles and manages accounts.

Failed logins always raise the same InvalidCredentials error; the specific
reason (unknown user, wrong password, inactive account) only reaches the
activity log.
"""

import logging
from typing import Iterable, List, Optional, Set

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.context import RequestContext
from app.core.exceptions import InvalidCredentials, NotFoundError, ValidationError
from app.core.logging_config import log_activity
from app.core.permissions import RoleName, permissions_for
from app.core.security import hash_password, verify_password
from app.db.session import transaction
from app.models.cast import CTDCast
from app.models.user import Role, User, UserRole
from app.schemas.auth_schema import UserCreate
from app.schemas.common import parse_payload

logger = logging.getLogger(__name__)

# Verified against on unknown usernames so both failure paths cost one PBKDF2 run.
_DUMMY_HASH = hash_password("phod-unknown-user")


# -------------------------------------------------------------------------
# Authentication
# -------------------------------------------------------------------------
def authenticate(db: Session, username: str, password: str) -> User:
    """Return the active user matching the credentials or raise InvalidCredentials."""
    user = db.execute(select(User).where(User.username == username)).scalar_one_or_none()

    if user is None:
        verify_password(password, _DUMMY_HASH)
        log_activity("Failed login attempt", f"Username: {username} (user not found)", level=logging.WARNING)
        raise InvalidCredentials()

    if not verify_password(password, user.password):
        log_activity("Failed login attempt", f"Username: {username} (wrong password)", level=logging.WARNING)
        raise InvalidCredentials()

    if not user.active:
        log_activity("Failed login attempt", f"Username: {username} (account inactive)", level=logging.WARNING)
        raise InvalidCredentials()

    log_activity("Successful login", f"Username: {username}", username=username)
    return user


def roles_of(db: Session, user_id: int) -> Set[RoleName]:
    rows = db.execute(
        select(Role.role_name)
        .join(UserRole, UserRole.role_id == Role.role_id)
        .where(UserRole.user_id == user_id)
    ).scalars().all()
    return {RoleName(name) for name in rows}


def authorize(identity: RequestContext, required_role: RoleName) -> bool:
    """Plain membership check; no role implies another."""
    return identity.has_role(required_role)


def build_context(db: Session, user_id: int) -> RequestContext:
    """Resolve a user id from the transport layer into a request context."""
    user = db.get(User, user_id)
    if user is None or not user.active:
        logger.warning(f"Token presented for missing or inactive user {user_id}")
        raise InvalidCredentials()

    roles = frozenset(roles_of(db, user.user_id))
    return RequestContext(
        user_id=user.user_id,
        username=user.username,
        full_name=user.full_name,
        roles=roles,
        permissions=permissions_for(roles),
    )


# -------------------------------------------------------------------------
# Account management
# -------------------------------------------------------------------------
def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def _role_ids(db: Session, roles: Iterable[RoleName]) -> List[int]:
    names = {RoleName(r).value for r in roles}
    if not names:
        return []
    found = db.execute(select(Role).where(Role.role_name.in_(names))).scalars().all()
    missing = names - {role.role_name for role in found}
    if missing:
        raise ValidationError(f"Unknown roles: {', '.join(sorted(missing))}", ["roles"])
    return [role.role_id for role in found]


def create_user(db: Session, data, acting_username: Optional[str] = None) -> User:
    payload = parse_payload(UserCreate, data)

    exists = db.execute(select(User.user_id).where(User.username == payload.username)).first()
    if exists:
        raise ValidationError(f"Username '{payload.username}' is already taken", ["username"])

    with transaction(db, "creating user"):
        user = User(
            username=payload.username,
            password=hash_password(payload.password),
            first_name=payload.first_name,
            last_name=payload.last_name,
            active=True,
        )
        db.add(user)
        db.flush()
        for role_id in _role_ids(db, payload.roles):
            db.add(UserRole(user_id=user.user_id, role_id=role_id))

    log_activity("User created", f"Username: {user.username}", username=acting_username)
    return user


def assign_role(db: Session, user_id: int, role: RoleName) -> None:
    """Add one role; assigning a role the user already holds is a no-op."""
    _get_user(db, user_id)
    if RoleName(role) in roles_of(db, user_id):
        return
    with transaction(db, "assigning role"):
        for role_id in _role_ids(db, [role]):
            db.add(UserRole(user_id=user_id, role_id=role_id))


def set_user_roles(db: Session, user_id: int, roles: Iterable[RoleName], acting_username: Optional[str] = None) -> Set[RoleName]:
    """Replace the user's whole role set."""
    _get_user(db, user_id)
    role_ids = _role_ids(db, roles)

    with transaction(db, "updating user roles"):
        db.query(UserRole).filter(UserRole.user_id == user_id).delete(synchronize_session=False)
        for role_id in role_ids:
            db.add(UserRole(user_id=user_id, role_id=role_id))

    db.expire_all()
    updated = roles_of(db, user_id)
    log_activity("User roles updated", f"User ID: {user_id} -> {sorted(r.value for r in updated)}", username=acting_username)
    return updated


def set_user_active(db: Session, user_id: int, active: bool, acting_username: Optional[str] = None) -> User:
    user = _get_user(db, user_id)
    with transaction(db, "updating user status"):
        user.active = active
    log_activity("User status changed", f"User ID: {user_id} active={active}", username=acting_username)
    return user


def delete_user(db: Session, user_id: int, context: RequestContext) -> None:
    if context.user_id == user_id:
        raise ValidationError("You cannot delete your own account.", ["user_id"])

    user = _get_user(db, user_id)
    observed = db.query(CTDCast).filter(CTDCast.observer_user_id == user_id).count()
    if observed:
        raise ValidationError(
            f"User observed {observed} cast(s); deactivate the account instead.", ["user_id"]
        )

    with transaction(db, "deleting user"):
        db.delete(user)
    log_activity("User deleted", f"Username: {user.username}", username=context.username)


def change_password(db: Session, user_id: int, current_password: str, new_password: str) -> None:
    user = _get_user(db, user_id)
    if not verify_password(current_password, user.password):
        log_activity("Password change refused", f"User ID: {user_id} (wrong current password)", level=logging.WARNING)
        raise InvalidCredentials()
    if len(new_password) < 8:
        raise ValidationError("New password must be at least 8 characters", ["new_password"])

    with transaction(db, "changing password"):
        user.password = hash_password(new_password)
    log_activity("Password changed", f"User ID: {user_id}", username=user.username)


def list_users(db: Session) -> List[dict]:
    users = db.execute(select(User).order_by(User.username)).scalars().all()
    return [
        {
            "user_id": u.user_id,
            "username": u.username,
            "first_name": u.first_name,
            "last_name": u.last_name,
            "full_name": u.full_name,
            "active": u.active,
            "roles": sorted(ur.role.role_name for ur in u.user_roles),
        }
        for u in users
    ]


def create_default_admin(db: Session, username: str, password: str) -> bool:
    """
    Create an admin account when no active admin exists.
    Returns True when an admin exists afterwards.
    """
    admin_count = (
        db.query(User)
        .join(UserRole, UserRole.user_id == User.user_id)
        .join(Role, Role.role_id == UserRole.role_id)
        .filter(Role.role_name == RoleName.ADMIN.value, User.active.is_(True))
        .count()
    )
    if admin_count > 0:
        return True

    if db.execute(select(Role.role_id).where(Role.role_name == RoleName.ADMIN.value)).first() is None:
        logger.error("Cannot create default admin: 'admin' role is missing")
        return False

    existing = db.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if existing is not None:
        assign_role(db, existing.user_id, RoleName.ADMIN)
        set_user_active(db, existing.user_id, True)
    else:
        create_user(
            db,
            {
                "username": username,
                "password": password,
                "first_name": "System",
                "last_name": "Administrator",
                "roles": [RoleName.ADMIN],
            },
        )
    log_activity("Default admin created", f"Username: {username}")
    logger.warning(f"Default admin '{username}' created; change its password.")
    return True
