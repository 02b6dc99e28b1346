"""
SegaSurvey Health Check API
Health router
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel
from typing import Optional

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health response"""
    status: str
    mixer_version: str
    demo_mode: bool
    corpus_loaded: bool
    corpus_count: int
    store_backend: Optional[str] = None
    redis_connected: bool


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Service status

    - mixer version and mode
    - corpus load state
    - store backend and Redis connection
    """
    state = request.app.state
    config = state.config

    corpus_loaded = getattr(state, 'corpus_loaded', False)
    corpus_count = len(state.corpus) if state.corpus is not None else 0

    store_backend = getattr(state.selections, 'backend', None)

    redis_connected = False
    if state.redis_client is not None:
        redis_connected = state.redis_client.ping()

    # The mixer needs the corpus; in-memory stores still work without Redis
    if corpus_loaded and state.mixer is not None:
        status = "ok"
    else:
        status = "degraded"

    return HealthResponse(
        status=status,
        mixer_version=config.MIXER_VERSION,
        demo_mode=config.DEMO_MODE,
        corpus_loaded=corpus_loaded,
        corpus_count=corpus_count,
        store_backend=store_backend,
        redis_connected=redis_connected
    )
