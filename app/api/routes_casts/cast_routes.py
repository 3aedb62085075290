from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import require_capability
from app.core.context import RequestContext
from app.core.permissions import Capability
from app.db.session import get_db
from app.schemas.cast_schema import CastCreate, CastSensorIn
from app.services import cast_service
from app.services.common import to_dict
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Casts"])

viewer = require_capability(Capability.VIEW_CASTS)
logger_role = require_capability(Capability.LOG_CASTS)


@router.get("/")
def list_casts(
    limit: int = Query(20, ge=1, le=200),
    context: RequestContext = Depends(viewer),
    db: Session = Depends(get_db),
):
    """Most recent casts first, with ship, station, cruise and observer names."""
    casts = cast_service.list_recent_casts(db, limit=limit)
    return {"success": True, "total": len(casts), "data": casts}


@router.post("/", status_code=201)
def create_cast(request: CastCreate, context: RequestContext = Depends(logger_role), db: Session = Depends(get_db)):
    """Start a new cast; the logged-in user becomes its observer."""
    cast = cast_service.create_cast(db, request, context)
    context.flash("CTD cast created successfully!")
    return {"success": True, "data": cast_service.get_cast(db, cast.ctd_cast_log_id), "messages": context.messages}


@router.get("/{cast_id}")
def get_cast(cast_id: int, context: RequestContext = Depends(viewer), db: Session = Depends(get_db)):
    """Cast header, every phase record, sensors, sample pressures and derived state."""
    return {"success": True, "data": cast_service.get_cast_detail(db, cast_id)}


@router.delete("/{cast_id}")
def delete_cast(cast_id: int, context: RequestContext = Depends(logger_role), db: Session = Depends(get_db)):
    cast_service.delete_cast(db, cast_id, context)
    context.flash("CTD cast deleted successfully!")
    return {"success": True, "messages": context.messages}


@router.get("/{cast_id}/state")
def get_cast_state(cast_id: int, context: RequestContext = Depends(viewer), db: Session = Depends(get_db)):
    state = cast_service.get_cast_state(db, cast_id)
    return {"success": True, "data": {"ctd_cast_log_id": cast_id, "state": state.value}}


# -------------------------------------------------------------------------
# Sensors attached to a cast
# -------------------------------------------------------------------------
@router.get("/{cast_id}/sensors")
def list_cast_sensors(cast_id: int, context: RequestContext = Depends(viewer), db: Session = Depends(get_db)):
    sensors = cast_service.list_cast_sensors(db, cast_id)
    return {"success": True, "total": len(sensors), "data": sensors}


@router.post("/{cast_id}/sensors", status_code=201)
def attach_sensor(
    cast_id: int, request: CastSensorIn, context: RequestContext = Depends(logger_role), db: Session = Depends(get_db)
):
    cast_sensor = cast_service.attach_sensor(db, cast_id, request)
    return {"success": True, "data": to_dict(cast_sensor)}


@router.delete("/{cast_id}/sensors/{cast_sensor_id}")
def detach_sensor(
    cast_id: int, cast_sensor_id: int, context: RequestContext = Depends(logger_role), db: Session = Depends(get_db)
):
    cast_service.detach_sensor(db, cast_id, cast_sensor_id)
    return {"success": True}
