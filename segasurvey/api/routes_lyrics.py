"""
SegaSurvey Lyrics API
Corpus lookup, AI pool ingest and selection records
"""

import logging

import redis
from fastapi import APIRouter, Request, HTTPException

from ..schemas.lyrics import (
    AILyricCreate,
    AILyricResponse,
    HumanLyric,
    HumanLyricResponse,
    SelectionResponse,
)
from ..core.lyrics import AILyricRow
from ..core.stores import ids_from_record

logger = logging.getLogger(__name__)

router = APIRouter(tags=["lyrics"])


@router.get("/lyrics/{lyric_id}", response_model=HumanLyricResponse)
async def get_lyric(request: Request, lyric_id: str) -> HumanLyricResponse:
    """
    Human corpus row

    - lyric_id: corpus id (sid)
    """
    state = request.app.state

    if state.corpus is None:
        raise HTTPException(status_code=503, detail="Lyric corpus not loaded")

    row = state.corpus.get(lyric_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Lyric not found: {lyric_id}")

    return HumanLyricResponse(
        lyric=HumanLyric(
            id=row.id,
            genre=row.genre,
            text=row.text,
            age=row.age,
            popularity=row.popularity,
            comments_density=row.comments_density
        )
    )


@router.post("/ai-lyrics", response_model=AILyricResponse, status_code=201)
async def add_ai_lyric(request: Request, body: AILyricCreate) -> AILyricResponse:
    """
    Store one generated lyric in the AI pool

    Each (session, genre) is written once; a second write is rejected.
    """
    state = request.app.state
    row = AILyricRow(
        session_id=body.session_id,
        genre=body.genre,
        id=body.id,
        text=body.text
    )

    try:
        created = state.ai_pool.add(row)
    except redis.RedisError as e:
        logger.error(f"AI pool write failed: {e}")
        raise HTTPException(status_code=503, detail="Lyric store unavailable")

    if not created:
        raise HTTPException(
            status_code=409,
            detail=f"AI lyric already stored for session {body.session_id}, genre {body.genre}"
        )

    logger.info(f"Stored AI lyric: session={row.session_id}, genre={row.genre}")
    return AILyricResponse(**row.as_dict())


@router.get("/sessions/{session_id}/selection", response_model=SelectionResponse)
async def get_selection(request: Request, session_id: str) -> SelectionResponse:
    """Human lyric ids shown to a session"""
    state = request.app.state

    try:
        record = state.selections.get(session_id)
    except redis.RedisError as e:
        logger.error(f"Selection read failed: {e}")
        raise HTTPException(status_code=503, detail="Lyric store unavailable")

    if record is None:
        raise HTTPException(status_code=404, detail=f"No selection for session: {session_id}")

    return SelectionResponse(
        session_id=session_id,
        selected_human_ids=ids_from_record(record),
        updated_at=record.get("updated_at")
    )
