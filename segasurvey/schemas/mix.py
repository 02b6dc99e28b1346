"""
SegaSurvey Mix Schemas
Lyric mixing request/response models
"""

from datetime import datetime
from typing import Dict, List, Optional, Union
from pydantic import BaseModel, Field


class MixRequest(BaseModel):
    """Participant answers from the moderation flow"""
    session_id: str = Field(..., min_length=1)
    age: Optional[int] = Field(default=None, ge=0, le=120)
    birthday: Optional[str] = None  # YYYY-MM-DD, used when age is missing
    sega_familiarity: int = Field(..., ge=1, le=5)
    ai_sentiment: Union[int, str]  # 1..5 or hate/no/neutral/ok/pro


class LyricCard(BaseModel):
    """One lyric in display order"""
    display_index: int
    id: str
    genre: str
    text: str
    is_ai: bool
    source: str  # "human" | "ai" | "warm_pool"
    color_tag: str
    animation_tag: str


class MixMetadata(BaseModel):
    """Mix bookkeeping"""
    total_count: int
    human_count: int
    ai_count: int
    fallback_mode: bool
    ai_source: Optional[str] = None
    genre_distribution: Dict[str, int]
    selected_human_ids: List[str]


class MixResponse(BaseModel):
    """Mix response"""
    success: bool
    session_id: str
    mixer_version: str
    lyrics: List[LyricCard]
    metadata: MixMetadata
    timestamp: datetime
