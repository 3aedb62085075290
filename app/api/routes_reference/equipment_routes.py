from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_context, require_capability
from app.core.context import RequestContext
from app.core.permissions import Capability
from app.db.session import get_db
from app.schemas.reference_schema import (
    NiskinIn,
    NiskinStatusUpdate,
    SampleTypeIn,
    SensorIn,
    SensorStatusUpdate,
)
from app.services import reference_service
from app.services.common import to_dict

router = APIRouter(tags=["Reference data"])

viewer = require_capability(Capability.VIEW_CASTS)
manager = require_capability(Capability.MANAGE_REFERENCE_DATA)
bottle_handler = require_capability(Capability.MANAGE_BOTTLES)


# -------------------------------------------------------------------------
# Sensors
# -------------------------------------------------------------------------
@router.get("/sensors")
def list_sensors(
    status: Optional[str] = Query(None, description="operational, maintenance, broken or retired"),
    available: bool = Query(False, description="Only sensors that can be attached to a cast"),
    context: RequestContext = Depends(viewer),
    db: Session = Depends(get_db),
):
    if available:
        sensors = reference_service.list_available_sensors(db)
    else:
        sensors = reference_service.list_sensors(db, status=status)
    return {"success": True, "total": len(sensors), "data": [to_dict(s) for s in sensors]}


@router.post("/sensors", status_code=201)
def create_sensor(request: SensorIn, context: RequestContext = Depends(manager), db: Session = Depends(get_db)):
    sensor = reference_service.create_sensor(db, request)
    context.flash("Sensor added successfully!")
    return {"success": True, "data": to_dict(sensor), "messages": context.messages}


@router.put("/sensors/{sensor_id}/status")
def update_sensor_status(
    sensor_id: int, request: SensorStatusUpdate, context: RequestContext = Depends(manager), db: Session = Depends(get_db)
):
    sensor = reference_service.update_sensor_status(db, sensor_id, request)
    return {"success": True, "data": to_dict(sensor)}


# -------------------------------------------------------------------------
# Niskin bottles
# -------------------------------------------------------------------------
@router.get("/niskins")
def list_niskins(
    active_only: bool = Query(True),
    context: RequestContext = Depends(viewer),
    db: Session = Depends(get_db),
):
    niskins = reference_service.list_niskins(db, active_only=active_only)
    return {"success": True, "total": len(niskins), "data": [to_dict(n) for n in niskins]}


@router.post("/niskins", status_code=201)
def create_niskin(request: NiskinIn, context: RequestContext = Depends(manager), db: Session = Depends(get_db)):
    niskin = reference_service.create_niskin(db, request)
    context.flash("Niskin bottle added successfully!")
    return {"success": True, "data": to_dict(niskin), "messages": context.messages}


@router.put("/niskins/{niskin_id}/status")
def update_niskin_status(
    niskin_id: int,
    request: NiskinStatusUpdate,
    context: RequestContext = Depends(bottle_handler),
    db: Session = Depends(get_db),
):
    niskin = reference_service.update_niskin_status(db, niskin_id, request)
    return {"success": True, "data": to_dict(niskin)}


# -------------------------------------------------------------------------
# Sample types and roles
# -------------------------------------------------------------------------
@router.get("/sample-types")
def list_sample_types(context: RequestContext = Depends(viewer), db: Session = Depends(get_db)):
    types = reference_service.list_sample_types(db)
    return {"success": True, "total": len(types), "data": [to_dict(t) for t in types]}


@router.post("/sample-types", status_code=201)
def create_sample_type(request: SampleTypeIn, context: RequestContext = Depends(manager), db: Session = Depends(get_db)):
    sample_type = reference_service.create_sample_type(db, request)
    context.flash("Sample type added successfully!")
    return {"success": True, "data": to_dict(sample_type), "messages": context.messages}


@router.get("/roles")
def list_roles(context: RequestContext = Depends(get_current_context), db: Session = Depends(get_db)):
    roles = reference_service.list_roles(db)
    return {"success": True, "data": [to_dict(r) for r in roles]}
