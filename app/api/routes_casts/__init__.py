from fastapi import APIRouter
from app.api.routes_casts.cast_routes import router as cast_routes
from app.api.routes_casts.phase_routes import router as phase_routes

router = APIRouter(prefix="/casts", tags=["Casts"])
router.include_router(cast_routes)
router.include_router(phase_routes)
