from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import require_capability
from app.core.context import RequestContext
from app.core.permissions import Capability
from app.db.session import get_db
from app.schemas.sampling_schema import BottleCreate, BottleReplacementIn, BottleStatusUpdate
from app.services import sampling_service
from app.services.common import to_dict

router = APIRouter(tags=["Bottles"])

viewer = require_capability(Capability.VIEW_CASTS)
bottle_handler = require_capability(Capability.MANAGE_BOTTLES)


@router.post("/bottles", status_code=201)
def create_bottle(request: BottleCreate, context: RequestContext = Depends(bottle_handler), db: Session = Depends(get_db)):
    bottle = sampling_service.create_bottle(db, request)
    context.flash("Bottle added successfully!")
    return {"success": True, "data": to_dict(bottle), "messages": context.messages}


@router.get("/bottles/{bottle_id}")
def get_bottle(bottle_id: int, context: RequestContext = Depends(viewer), db: Session = Depends(get_db)):
    return {"success": True, "data": to_dict(sampling_service.get_bottle(db, bottle_id))}


@router.put("/bottles/{bottle_id}/status")
def update_bottle_status(
    bottle_id: int,
    request: BottleStatusUpdate,
    context: RequestContext = Depends(bottle_handler),
    db: Session = Depends(get_db),
):
    bottle = sampling_service.update_bottle_status(db, bottle_id, request, context)
    context.flash(f"Bottle {bottle.bottle_number} is now {bottle.status}")
    return {"success": True, "data": to_dict(bottle), "messages": context.messages}


@router.post("/bottles/{bottle_id}/replacements", status_code=201)
def replace_bottle(
    bottle_id: int,
    request: BottleReplacementIn,
    context: RequestContext = Depends(bottle_handler),
    db: Session = Depends(get_db),
):
    replacement = sampling_service.replace_bottle(db, bottle_id, request, context)
    context.flash("Bottle replacement recorded successfully!")
    return {"success": True, "data": to_dict(replacement), "messages": context.messages}


@router.get("/bottles/{bottle_id}/replacements")
def list_replacements(bottle_id: int, context: RequestContext = Depends(viewer), db: Session = Depends(get_db)):
    rows = sampling_service.list_bottle_replacements(db, bottle_id)
    return {"success": True, "total": len(rows), "data": rows}


@router.get("/casts/{cast_id}/bottles")
def bottles_for_cast(cast_id: int, context: RequestContext = Depends(viewer), db: Session = Depends(get_db)):
    rows = sampling_service.get_bottles_for_cast(db, cast_id)
    return {"success": True, "total": len(rows), "data": rows}
