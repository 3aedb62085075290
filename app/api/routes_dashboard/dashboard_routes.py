from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import require_capability
from app.core.context import RequestContext
from app.core.exceptions import InsufficientRole
from app.core.permissions import Capability
from app.db.session import get_db
from app.services.cast_service import list_recent_casts
from app.services.reference_service import get_database_stats, search
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Dashboard"])


@router.get("/")
def dashboard(
    context: RequestContext = Depends(require_capability(Capability.VIEW_DASHBOARD)),
    db: Session = Depends(get_db),
):
    """System overview: table counts, recent casts and the caller's quick actions."""
    logger.info(f"Dashboard requested by {context.username}")
    return {
        "success": True,
        "data": {
            "user": context.as_dict(),
            "stats": get_database_stats(db),
            "recent_casts": list_recent_casts(db, limit=10),
            "navigation": context.navigation(),
        },
    }


@router.get("/search")
def search_entities(
    entity: str = Query(..., description="users, ships, cruises, stations or ctd_cast_log"),
    term: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100),
    context: RequestContext = Depends(require_capability(Capability.VIEW_DASHBOARD)),
    db: Session = Depends(get_db),
):
    # account listings stay with user managers
    if entity == "users" and not context.can(Capability.MANAGE_USERS):
        raise InsufficientRole(Capability.MANAGE_USERS.value)
    results = search(db, entity, term, limit)
    return {"success": True, "total": len(results), "data": results}
