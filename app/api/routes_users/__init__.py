from fastapi import APIRouter
from app.api.routes_users.user_routes import router as user_routes

router = APIRouter(prefix="/users", tags=["Users"])
router.include_router(user_routes)
