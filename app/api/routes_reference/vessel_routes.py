from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import require_capability
from app.core.context import RequestContext
from app.core.permissions import Capability
from app.db.session import get_db
from app.schemas.reference_schema import ActiveUpdate, CruiseIn, ShipIn
from app.services import reference_service
from app.services.common import to_dict

router = APIRouter(tags=["Reference data"])

viewer = require_capability(Capability.VIEW_CASTS)
manager = require_capability(Capability.MANAGE_REFERENCE_DATA)


# -------------------------------------------------------------------------
# Ships
# -------------------------------------------------------------------------
@router.get("/ships")
def list_ships(
    active_only: bool = Query(True),
    context: RequestContext = Depends(viewer),
    db: Session = Depends(get_db),
):
    ships = reference_service.list_ships(db, active_only=active_only)
    return {"success": True, "total": len(ships), "data": [to_dict(s) for s in ships]}


@router.get("/ships/{ship_id}")
def get_ship(ship_id: int, context: RequestContext = Depends(viewer), db: Session = Depends(get_db)):
    return {"success": True, "data": to_dict(reference_service.get_ship(db, ship_id))}


@router.post("/ships", status_code=201)
def create_ship(request: ShipIn, context: RequestContext = Depends(manager), db: Session = Depends(get_db)):
    ship = reference_service.create_ship(db, request)
    context.flash("Ship added successfully!")
    return {"success": True, "data": to_dict(ship), "messages": context.messages}


@router.put("/ships/{ship_id}")
def update_ship(ship_id: int, request: ShipIn, context: RequestContext = Depends(manager), db: Session = Depends(get_db)):
    ship = reference_service.update_ship(db, ship_id, request)
    context.flash("Ship updated successfully!")
    return {"success": True, "data": to_dict(ship), "messages": context.messages}


@router.put("/ships/{ship_id}/active")
def set_ship_active(
    ship_id: int, request: ActiveUpdate, context: RequestContext = Depends(manager), db: Session = Depends(get_db)
):
    ship = reference_service.set_ship_active(db, ship_id, request.active)
    return {"success": True, "data": to_dict(ship)}


# -------------------------------------------------------------------------
# Cruises
# -------------------------------------------------------------------------
@router.get("/cruises")
def list_cruises(
    active_only: bool = Query(True),
    context: RequestContext = Depends(viewer),
    db: Session = Depends(get_db),
):
    cruises = reference_service.list_cruises(db, active_only=active_only)
    return {"success": True, "total": len(cruises), "data": [to_dict(c) for c in cruises]}


@router.get("/cruises/{cruise_id}")
def get_cruise(cruise_id: int, context: RequestContext = Depends(viewer), db: Session = Depends(get_db)):
    return {"success": True, "data": to_dict(reference_service.get_cruise(db, cruise_id))}


@router.post("/cruises", status_code=201)
def create_cruise(request: CruiseIn, context: RequestContext = Depends(manager), db: Session = Depends(get_db)):
    cruise = reference_service.create_cruise(db, request)
    context.flash("Cruise added successfully!")
    return {"success": True, "data": to_dict(cruise), "messages": context.messages}


@router.put("/cruises/{cruise_id}")
def update_cruise(
    cruise_id: int, request: CruiseIn, context: RequestContext = Depends(manager), db: Session = Depends(get_db)
):
    cruise = reference_service.update_cruise(db, cruise_id, request)
    context.flash("Cruise updated successfully!")
    return {"success": True, "data": to_dict(cruise), "messages": context.messages}


@router.put("/cruises/{cruise_id}/active")
def set_cruise_active(
    cruise_id: int, request: ActiveUpdate, context: RequestContext = Depends(manager), db: Session = Depends(get_db)
):
    cruise = reference_service.set_cruise_active(db, cruise_id, request.active)
    return {"success": True, "data": to_dict(cruise)}
