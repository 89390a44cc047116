from fastapi import APIRouter
from . import auth, kids, tasks, rewards, points

router = APIRouter()

router.include_router(auth.router, tags=["Auth"])
router.include_router(kids.router, prefix="/kids", tags=["Kids"])
router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
router.include_router(rewards.router, tags=["Rewards"])
router.include_router(points.router, prefix="/points", tags=["Points"])


@router.get("/health", tags=["Health"])
def health():
    return {"status": "ok"}
