from fastapi import APIRouter

from . import profile

router = APIRouter(tags=["User"])

router.include_router(profile.router)
