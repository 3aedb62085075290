from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import require_capability
from app.core.context import RequestContext
from app.core.permissions import Capability
from app.db.session import get_db
from app.schemas.sampling_schema import SampleCaptureIn
from app.services import sampling_service
from app.services.common import to_dict

router = APIRouter(tags=["Sampling"])


@router.post("/casts/{cast_id}/pressures", status_code=201)
def record_capture(
    cast_id: int,
    request: SampleCaptureIn,
    context: RequestContext = Depends(require_capability(Capability.RECORD_SAMPLES)),
    db: Session = Depends(get_db),
):
    """Append one niskin capture; earlier attempts are kept."""
    capture = sampling_service.record_sample_capture(db, cast_id, request, context)
    context.flash("Sample pressure recorded successfully!")
    return {"success": True, "data": to_dict(capture), "messages": context.messages}


@router.get("/casts/{cast_id}/pressures")
def list_captures(
    cast_id: int,
    context: RequestContext = Depends(require_capability(Capability.VIEW_CASTS)),
    db: Session = Depends(get_db),
):
    rows = sampling_service.list_sample_pressures(db, cast_id)
    return {"success": True, "total": len(rows), "data": rows}


@router.get("/casts/{cast_id}/summary")
def capture_summary(
    cast_id: int,
    context: RequestContext = Depends(require_capability(Capability.VIEW_CASTS)),
    db: Session = Depends(get_db),
):
    """Actual vs. target pressure for every capture of the cast."""
    rows = sampling_service.get_capture_summary(db, cast_id)
    return {"success": True, "total": len(rows), "data": rows}
