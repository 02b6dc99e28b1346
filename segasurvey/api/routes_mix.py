"""
SegaSurvey Mix API
Lyric mixing router
"""

import logging
from datetime import datetime, timezone

import redis
from fastapi import APIRouter, Request, HTTPException

from ..schemas.mix import MixRequest, MixResponse, LyricCard, MixMetadata
from ..schemas.common import ErrorResponse
from ..core.errors import EmptyCorpusError, InvalidSelectionSizeError
from ..core.lyrics import Preferences

logger = logging.getLogger(__name__)

router = APIRouter(tags=["mix"])


@router.post(
    "/mix-lyrics",
    response_model=MixResponse,
    responses={
        422: {"model": ErrorResponse, "description": "Invalid preferences"},
        500: {"model": ErrorResponse, "description": "Selection failed"},
        503: {"model": ErrorResponse, "description": "Corpus or store unavailable"}
    }
)
async def mix_lyrics(request: Request, body: MixRequest) -> MixResponse:
    """
    Mix human and AI lyrics for a survey session

    - 5 human lyrics picked for the participant's preferences
    - 5 AI lyrics from the session (or warm) pool
    - shuffled together; human-only fallback when no AI lyrics exist
    """
    state = request.app.state
    config = state.config

    if state.mixer is None:
        raise HTTPException(status_code=503, detail="Lyric mixer not initialized")

    try:
        prefs = Preferences.from_answers(
            sega_familiarity=body.sega_familiarity,
            ai_sentiment=body.ai_sentiment,
            age=body.age,
            birthday=body.birthday,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    logger.info(f"Mixing lyrics for session {body.session_id}: {prefs}")

    try:
        result = state.mixer.mix(body.session_id, prefs)
    except EmptyCorpusError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except InvalidSelectionSizeError as e:
        logger.error(f"Selection error for session {body.session_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    except redis.RedisError as e:
        logger.error(f"Store error for session {body.session_id}: {e}")
        raise HTTPException(status_code=503, detail="Lyric store unavailable")
    except Exception as e:
        logger.error(f"Mix error for session {body.session_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return MixResponse(
        success=True,
        session_id=body.session_id,
        mixer_version=config.MIXER_VERSION,
        lyrics=[LyricCard(**item.as_dict()) for item in result.items],
        metadata=MixMetadata(**result.metadata()),
        timestamp=datetime.now(tz=timezone.utc)
    )
