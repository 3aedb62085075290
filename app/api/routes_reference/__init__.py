from fastapi import APIRouter
from app.api.routes_reference.vessel_routes import router as vessel_routes
from app.api.routes_reference.station_routes import router as station_routes
from app.api.routes_reference.equipment_routes import router as equipment_routes

router = APIRouter(prefix="/reference", tags=["Reference data"])
router.include_router(vessel_routes)
router.include_router(station_routes)
router.include_router(equipment_routes)
