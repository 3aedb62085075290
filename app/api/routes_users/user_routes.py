from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import require_capability
from app.core.context import RequestContext
from app.core.permissions import Capability
from app.db.session import get_db
from app.schemas.auth_schema import UserActiveUpdate, UserCreate, UserRolesUpdate
from app.services import auth_service
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])

admin_only = require_capability(Capability.MANAGE_USERS)


@router.get("/")
def list_users(context: RequestContext = Depends(admin_only), db: Session = Depends(get_db)):
    users = auth_service.list_users(db)
    return {"success": True, "total": len(users), "users": users}


@router.post("/", status_code=201)
def create_user(request: UserCreate, context: RequestContext = Depends(admin_only), db: Session = Depends(get_db)):
    user = auth_service.create_user(db, request, acting_username=context.username)
    context.flash("User created successfully!")
    return {
        "success": True,
        "data": {"user_id": user.user_id, "username": user.username, "full_name": user.full_name},
        "messages": context.messages,
    }


@router.put("/{user_id}/roles")
def update_roles(
    user_id: int,
    request: UserRolesUpdate,
    context: RequestContext = Depends(admin_only),
    db: Session = Depends(get_db),
):
    roles = auth_service.set_user_roles(db, user_id, request.roles, acting_username=context.username)
    context.flash("User roles updated successfully!")
    return {"success": True, "data": {"user_id": user_id, "roles": sorted(r.value for r in roles)}, "messages": context.messages}


@router.put("/{user_id}/active")
def update_status(
    user_id: int,
    request: UserActiveUpdate,
    context: RequestContext = Depends(admin_only),
    db: Session = Depends(get_db),
):
    user = auth_service.set_user_active(db, user_id, request.active, acting_username=context.username)
    context.flash("User status updated successfully!")
    return {"success": True, "data": {"user_id": user.user_id, "active": user.active}, "messages": context.messages}


@router.delete("/{user_id}")
def delete_user(user_id: int, context: RequestContext = Depends(admin_only), db: Session = Depends(get_db)):
    auth_service.delete_user(db, user_id, context)
    context.flash("User deleted successfully!")
    return {"success": True, "messages": context.messages}
