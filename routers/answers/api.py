from fastapi import APIRouter

from . import answers

router = APIRouter(tags=["Answers"])

router.include_router(answers.router)
