# app/routers/admin/__init__.py
from fastapi import APIRouter, Depends

from app.utils.authz import require_admin

from . import categories, chapters, content, creators, narrator_requests, reviews, support, users
from .router import router as dashboard_router

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])
router.include_router(dashboard_router)
router.include_router(chapters.router)
router.include_router(categories.router)
router.include_router(creators.router)
router.include_router(users.router)
router.include_router(content.router)
router.include_router(support.router)
router.include_router(reviews.router)
router.include_router(narrator_requests.router)
