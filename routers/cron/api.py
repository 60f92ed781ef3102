from fastapi import APIRouter

from . import cron

router = APIRouter(tags=["Cron"])

router.include_router(cron.router)
