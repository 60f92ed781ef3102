from fastapi import APIRouter

from . import content, cron_jobs, daily_challenges, disputes, guest, issues, users

router = APIRouter(tags=["Admin"])

router.include_router(disputes.router)
router.include_router(issues.router)
router.include_router(users.router)
router.include_router(guest.router)
router.include_router(cron_jobs.router)
router.include_router(daily_challenges.router)
router.include_router(content.router)
