"""
SegaSurvey Lyric Schemas
Corpus lookup, AI pool ingest and selection record models
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class HumanLyric(BaseModel):
    """Human corpus row"""
    id: str
    genre: str
    text: str
    age: Optional[float] = None
    popularity: Optional[float] = None
    comments_density: Optional[float] = None


class HumanLyricResponse(BaseModel):
    """Single corpus row response"""
    lyric: HumanLyric


class AILyricCreate(BaseModel):
    """Generated lyric for one (session, genre)"""
    session_id: str = Field(..., min_length=1)
    genre: str = Field(..., min_length=1)
    id: Optional[str] = None
    text: str = Field(..., min_length=1)


class AILyricResponse(BaseModel):
    """Stored AI pool row"""
    session_id: str
    genre: str
    id: Optional[str] = None
    text: str
    created_at: datetime


class SelectionResponse(BaseModel):
    """Human ids shown to a session"""
    session_id: str
    selected_human_ids: List[str]
    updated_at: Optional[datetime] = None
