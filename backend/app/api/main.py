from fastapi import APIRouter

from app.api.routes import guardians, login, paper_applications, uploads, utils

api_router = APIRouter()
api_router.include_router(login.router)
api_router.include_router(utils.router)
api_router.include_router(paper_applications.router)
api_router.include_router(guardians.router)
api_router.include_router(uploads.router)
