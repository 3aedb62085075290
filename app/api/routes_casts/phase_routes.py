from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.api.deps import require_capability
from app.core.context import RequestContext
from app.core.permissions import Capability
from app.db.session import get_db
from app.services import cast_service
from app.services.common import to_dict

router = APIRouter(tags=["Cast phases"])

PHASE_TITLES = {
    "pre_cast": "Pre-cast information",
    "beginning_position": "Beginning position",
    "at_depth": "At-depth position",
    "capture_start": "Capture start",
    "bottom_depth": "Bottom depth",
    "ending_position": "Ending position",
    "on_deck": "On-deck position",
    "post_cast": "Post-cast information",
}


@router.get("/{cast_id}/phases/{phase}")
def get_phase(
    cast_id: int,
    phase: str,
    context: RequestContext = Depends(require_capability(Capability.VIEW_CASTS)),
    db: Session = Depends(get_db),
):
    return {"success": True, "data": cast_service.get_phase(db, cast_id, phase)}


@router.put("/{cast_id}/phases/{phase}")
def save_phase(
    cast_id: int,
    phase: str,
    payload: Dict[str, Any] = Body(...),
    context: RequestContext = Depends(require_capability(Capability.LOG_CASTS)),
    db: Session = Depends(get_db),
):
    """
    Save one phase of a cast, replacing any earlier submission.
    Earlier phases that are still missing come back as warnings, not errors.
    """
    record, warnings = cast_service.upsert_phase(db, cast_id, phase, payload, context)
    context.flash(f"{PHASE_TITLES.get(phase, phase)} saved successfully!")
    for warning in warnings:
        context.flash(warning, level="warning")
    return {
        "success": True,
        "data": to_dict(record),
        "warnings": warnings,
        "state": cast_service.get_cast_state(db, cast_id).value,
        "messages": context.messages,
    }
