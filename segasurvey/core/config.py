"""
SegaSurvey Backend Configuration
Environment-driven settings
"""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Mixer settings
    MIXER_VERSION: str = Field(default="mix_v2_genre_cap", description="Lyric mixer version")
    HUMAN_COUNT: int = Field(default=5, ge=1, le=20, description="Human lyrics per session")
    AI_COUNT: int = Field(default=5, ge=1, le=20, description="AI lyrics per session")
    MAX_PER_GENRE: int = Field(default=3, ge=1, description="Max human lyrics per genre")
    WARM_POOL_ENABLED: bool = Field(default=True, description="Reuse recent AI lyrics when a session has none")
    WARM_POOL_INDEX_SIZE: int = Field(default=500, ge=1, description="Recent AI lyrics kept in the warm pool index")
    RANDOM_SEED: Optional[int] = Field(default=None, description="Seed for jitter/exclusion/shuffle (tests only)")

    # Scoring weights
    AGE_WINDOW: float = Field(default=10.0, ge=0.0, description="Age proximity window")
    POPULARITY_WEIGHT: float = Field(default=2.0, ge=0.0, description="Popularity multiplier")
    COMMENTS_WEIGHT: float = Field(default=1.5, ge=0.0, description="Comments density multiplier")
    FAMILIARITY_BONUS: float = Field(default=15.0, ge=0.0, description="Sega familiarity genre bonus")
    SENTIMENT_BONUS: float = Field(default=10.0, ge=0.0, description="AI sentiment genre bonus")
    AGE_BRACKET_BONUS: float = Field(default=12.0, ge=0.0, description="Age bracket genre bonus")
    JITTER_MAX: float = Field(default=5.0, ge=0.0, description="Upper bound of the random tie-breaker")

    # Mode settings
    DEMO_MODE: bool = Field(default=True, description="Demo mode (synthetic corpus when no file is set)")

    # Redis settings
    REDIS_URL: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    REDIS_KEY_PREFIX: str = Field(default="segasurvey", description="Namespace for Redis keys")

    # File paths
    CORPUS_PATH: str = Field(
        default="",
        description="Human lyric corpus JSON path (survey_data export)"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


def get_settings() -> Settings:

    return Settings()
