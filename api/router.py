from fastapi import APIRouter
from app.settings import settings
from api.endpoints.skills import router as skills_router
from api.endpoints.assessments import router as assessments_router
from api.endpoints.taxonomy import router as taxonomy_router
from api.endpoints.health import router as health_router

api_router = APIRouter(prefix=settings.API_V1_PREFIX)
api_router.include_router(skills_router, tags=["skills"])
api_router.include_router(assessments_router, tags=["assessments"])
api_router.include_router(taxonomy_router, tags=["taxonomy"])
api_router.include_router(health_router, tags=["health"])
