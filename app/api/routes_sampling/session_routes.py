from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import require_capability
from app.core.context import RequestContext
from app.core.permissions import Capability
from app.db.session import get_db
from app.schemas.sampling_schema import SampleTimingIn, SamplingSessionClose, SamplingSessionOpen
from app.services import sampling_service
from app.services.common import to_dict

router = APIRouter(tags=["Sampling sessions"])

viewer = require_capability(Capability.VIEW_CASTS)
session_manager = require_capability(Capability.MANAGE_SAMPLING_SESSIONS)


@router.get("/casts/{cast_id}/sessions")
def list_sessions(cast_id: int, context: RequestContext = Depends(viewer), db: Session = Depends(get_db)):
    rows = sampling_service.list_sampling_sessions(db, cast_id)
    return {"success": True, "total": len(rows), "data": rows}


@router.post("/casts/{cast_id}/sessions", status_code=201)
def open_session(
    cast_id: int,
    request: Optional[SamplingSessionOpen] = None,
    context: RequestContext = Depends(session_manager),
    db: Session = Depends(get_db),
):
    """Begin sampling for a cast that is on deck."""
    session = sampling_service.open_sampling_session(db, cast_id, request or {})
    context.flash("Sampling session started")
    return {"success": True, "data": to_dict(session), "messages": context.messages}


@router.put("/sessions/{session_id}/close")
def close_session(
    session_id: int,
    request: Optional[SamplingSessionClose] = None,
    context: RequestContext = Depends(session_manager),
    db: Session = Depends(get_db),
):
    session = sampling_service.close_sampling_session(db, session_id, request or {})
    context.flash("Sampling session closed")
    return {"success": True, "data": to_dict(session), "messages": context.messages}


@router.post("/sessions/{session_id}/timings", status_code=201)
def set_timing(
    session_id: int,
    request: SampleTimingIn,
    context: RequestContext = Depends(session_manager),
    db: Session = Depends(get_db),
):
    timing = sampling_service.set_sample_timing(db, session_id, request, context)
    return {"success": True, "data": to_dict(timing)}


@router.get("/sessions/{session_id}/deadlines")
def deadlines(session_id: int, context: RequestContext = Depends(viewer), db: Session = Depends(get_db)):
    """Processing deadlines, soonest first, flagged when overdue."""
    rows = sampling_service.get_sample_deadlines(db, session_id)
    return {"success": True, "total": len(rows), "data": rows}
