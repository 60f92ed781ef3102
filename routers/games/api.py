from fastapi import APIRouter

from . import board, games, guest_games, seed, state

router = APIRouter(tags=["Games"])

router.include_router(board.router)
# Fixed paths first so they are not captured by /{game_id}
router.include_router(guest_games.router)
router.include_router(seed.router)
router.include_router(state.router)
router.include_router(games.router)
