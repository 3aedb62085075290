from fastapi import APIRouter
from app.api.routes_sampling.capture_routes import router as capture_routes
from app.api.routes_sampling.bottle_routes import router as bottle_routes
from app.api.routes_sampling.session_routes import router as session_routes

router = APIRouter(prefix="/sampling", tags=["Sampling"])
router.include_router(capture_routes)
router.include_router(bottle_routes)
router.include_router(session_routes)
