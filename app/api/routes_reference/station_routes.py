from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import require_capability
from app.core.context import RequestContext
from app.core.permissions import Capability
from app.db.session import get_db
from app.schemas.reference_schema import ActiveUpdate, StationIn, TargetDepthIn
from app.services import reference_service
from app.services.common import to_dict
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reference data"])

viewer = require_capability(Capability.VIEW_CASTS)
manager = require_capability(Capability.MANAGE_REFERENCE_DATA)


@router.get("/stations")
def list_stations(
    cruise_id: Optional[int] = Query(None, description="Only stations of this cruise"),
    active_only: bool = Query(True),
    context: RequestContext = Depends(viewer),
    db: Session = Depends(get_db),
):
    stations = reference_service.list_stations(db, cruise_id=cruise_id, active_only=active_only)
    return {"success": True, "total": len(stations), "data": [to_dict(s) for s in stations]}


@router.get("/stations/{station_id}")
def get_station(station_id: int, context: RequestContext = Depends(viewer), db: Session = Depends(get_db)):
    station = reference_service.get_station(db, station_id)
    data = to_dict(station)
    data["target_depths"] = [to_dict(t) for t in station.target_depths]
    return {"success": True, "data": data}


@router.post("/stations", status_code=201)
def create_station(request: StationIn, context: RequestContext = Depends(manager), db: Session = Depends(get_db)):
    station = reference_service.create_station(db, request)
    logger.info(f"Station {station.station_number} added to cruise {station.cruise_id}")
    context.flash("Station added successfully!")
    return {"success": True, "data": to_dict(station), "messages": context.messages}


@router.put("/stations/{station_id}")
def update_station(
    station_id: int, request: StationIn, context: RequestContext = Depends(manager), db: Session = Depends(get_db)
):
    station = reference_service.update_station(db, station_id, request)
    context.flash("Station updated successfully!")
    return {"success": True, "data": to_dict(station), "messages": context.messages}


@router.put("/stations/{station_id}/active")
def set_station_active(
    station_id: int, request: ActiveUpdate, context: RequestContext = Depends(manager), db: Session = Depends(get_db)
):
    station = reference_service.set_station_active(db, station_id, request.active)
    return {"success": True, "data": to_dict(station)}


# -------------------------------------------------------------------------
# Target depths
# -------------------------------------------------------------------------
@router.get("/stations/{station_id}/target-depths")
def list_target_depths(station_id: int, context: RequestContext = Depends(viewer), db: Session = Depends(get_db)):
    depths = reference_service.list_target_depths(db, station_id)
    return {"success": True, "total": len(depths), "data": [to_dict(t) for t in depths]}


@router.post("/stations/{station_id}/target-depths", status_code=201)
def add_target_depth(
    station_id: int, request: TargetDepthIn, context: RequestContext = Depends(manager), db: Session = Depends(get_db)
):
    target = reference_service.add_target_depth(db, station_id, request)
    return {"success": True, "data": to_dict(target)}


@router.delete("/target-depths/{target_depth_id}")
def delete_target_depth(
    target_depth_id: int, context: RequestContext = Depends(manager), db: Session = Depends(get_db)
):
    reference_service.delete_target_depth(db, target_depth_id)
    return {"success": True}
