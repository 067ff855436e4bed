from fastapi import APIRouter

from app.api.routes import analyze, projects, utils

api_router = APIRouter()
api_router.include_router(utils.router, tags=["utils"])
api_router.include_router(analyze.router, tags=["analyze"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
