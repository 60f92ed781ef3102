from fastapi import APIRouter

from . import categories, practice, questions

router = APIRouter(tags=["Questions"])

router.include_router(categories.router)
router.include_router(questions.router)
router.include_router(practice.router)
