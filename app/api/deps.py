"""API dependencies: database session, request context and capability guards."""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.context import RequestContext
from app.core.exceptions import AuthError, InsufficientRole
from app.core.permissions import Capability
from app.core.security import decode_access_token
from app.db.session import get_db
from app.services.auth_service import build_context

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> RequestContext:
    """Resolve the bearer token into the caller's identity, roles and permissions."""
    if not credentials:
        raise AuthError("Please log in to access this page.")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        logger.warning("Rejected invalid or expired token")
        raise AuthError("Your session has expired. Please log in again.")

    return build_context(db, int(payload["sub"]))


def require_capability(capability: Capability):
    """Dependency factory: the caller's permission set must contain `capability`."""

    def guard(context: RequestContext = Depends(get_current_context)) -> RequestContext:
        if not context.can(capability):
            logger.warning(f"User {context.username} denied '{capability.value}'")
            raise InsufficientRole(capability.value)
        return context

    return guard
