from fastapi import APIRouter

from . import challenge

router = APIRouter(tags=["Daily Challenge"])

router.include_router(challenge.router)
