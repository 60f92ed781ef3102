from fastapi import APIRouter

from . import claim

router = APIRouter(tags=["Guest Sessions"])

router.include_router(claim.router)
