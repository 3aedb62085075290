from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_context
from app.core.context import RequestContext
from app.core.security import create_access_token
from app.db.session import get_db
from app.schemas.auth_schema import LoginRequest, PasswordChange, TokenResponse
from app.services.auth_service import authenticate, build_context, change_password
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """
    Exchange username and password for a bearer token.
    Any failure returns the same 401 "Invalid username or password."
    """
    user = authenticate(db, request.username, request.password)
    context = build_context(db, user.user_id)
    token = create_access_token(user.user_id, user.username)
    return TokenResponse(
        access_token=token,
        user_id=user.user_id,
        username=user.username,
        full_name=user.full_name,
        roles=sorted(role.value for role in context.roles),
    )


@router.get("/me")
def whoami(context: RequestContext = Depends(get_current_context)):
    """Current identity with its roles, permissions and visible quick actions."""
    data = context.as_dict()
    data["navigation"] = context.navigation()
    return {"success": True, "data": data}


@router.post("/password")
def update_password(
    request: PasswordChange,
    context: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    change_password(db, context.user_id, request.current_password, request.new_password)
    context.flash("Password changed successfully!")
    return {"success": True, "messages": context.messages}
