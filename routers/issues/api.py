from fastapi import APIRouter

from . import issues

router = APIRouter(tags=["Issues"])

router.include_router(issues.router)
