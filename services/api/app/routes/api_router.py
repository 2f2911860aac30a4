"""Central API router composition.

Mounts the individual route modules under the `/api` prefix the web viewer calls
and provides a single import point for `FastAPI.include_router(...)`.
"""

from fastapi import APIRouter

from .analysis import router as analysis_router
from .replays import router as replays_router
from .sample_data import router as sample_data_router

router = APIRouter(prefix="/api")

router.include_router(replays_router)
router.include_router(sample_data_router)
router.include_router(analysis_router)
