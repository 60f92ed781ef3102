from fastapi import APIRouter

from . import achievements, leaderboard, stats

router = APIRouter(tags=["Leaderboard"])

router.include_router(achievements.router)
router.include_router(leaderboard.router)
router.include_router(stats.router)
