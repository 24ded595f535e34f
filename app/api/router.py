from fastapi import APIRouter
from app.api.adaptive import router as adaptive_router

api_router = APIRouter()

# Include all route modules
api_router.include_router(adaptive_router)
