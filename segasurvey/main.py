"""
SegaSurvey Backend Main Application
FastAPI app and startup/shutdown lifecycle
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import numpy as np
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import get_settings, Settings
from .core.loaders import load_lyric_corpus
from .core.mixer import LyricMixer
from .core.scoring import ScoringWeights
from .core.stores import (
    RedisClient,
    RedisAIPoolStore,
    RedisSelectionStore,
    InMemoryAIPoolStore,
    InMemorySelectionStore,
)
from .api import routes_health, routes_lyrics, routes_mix
from .utils.logging import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


def build_weights(config: Settings) -> ScoringWeights:
    """Scoring weights from settings"""
    return ScoringWeights(
        age_window=config.AGE_WINDOW,
        popularity_weight=config.POPULARITY_WEIGHT,
        comments_weight=config.COMMENTS_WEIGHT,
        familiarity_bonus=config.FAMILIARITY_BONUS,
        sentiment_bonus=config.SENTIMENT_BONUS,
        age_bracket_bonus=config.AGE_BRACKET_BONUS,
        jitter_max=config.JITTER_MAX
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create the FastAPI app (settings override for tests)"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """App lifecycle"""
        # Startup
        logger.info("=" * 60)
        logger.info("SegaSurvey Backend Starting...")
        logger.info("=" * 60)

        config = settings or get_settings()
        app.state.config = config

        logger.info(f"Mixer Version: {config.MIXER_VERSION}")
        logger.info(f"Demo Mode: {config.DEMO_MODE}")

        # 1. Human lyric corpus
        try:
            app.state.corpus = load_lyric_corpus(config.CORPUS_PATH, config.DEMO_MODE)
            app.state.corpus_loaded = True
        except Exception as e:
            logger.error(f"Failed to load lyric corpus: {e}")
            app.state.corpus = None
            app.state.corpus_loaded = False

        # 2. Stores (Redis, or in-memory when Redis is unreachable)
        app.state.redis_client = None
        if config.REDIS_URL:
            redis_client = RedisClient(config.REDIS_URL)
            if redis_client.client is not None:
                app.state.redis_client = redis_client

        if app.state.redis_client is not None:
            client = app.state.redis_client.client
            app.state.ai_pool = RedisAIPoolStore(
                client,
                prefix=config.REDIS_KEY_PREFIX,
                recent_limit=config.WARM_POOL_INDEX_SIZE
            )
            app.state.selections = RedisSelectionStore(client, prefix=config.REDIS_KEY_PREFIX)
        else:
            logger.warning("Using in-memory stores (data is lost on restart)")
            app.state.ai_pool = InMemoryAIPoolStore()
            app.state.selections = InMemorySelectionStore()

        # 3. Mixer
        if app.state.corpus is not None:
            app.state.mixer = LyricMixer(
                corpus=app.state.corpus,
                ai_pool=app.state.ai_pool,
                selections=app.state.selections,
                weights=build_weights(config),
                rng=np.random.default_rng(config.RANDOM_SEED),
                human_count=config.HUMAN_COUNT,
                ai_count=config.AI_COUNT,
                max_per_genre=config.MAX_PER_GENRE,
                warm_pool_enabled=config.WARM_POOL_ENABLED
            )
        else:
            app.state.mixer = None
            logger.warning("Mixer not initialized (no lyric corpus)")

        logger.info("=" * 60)
        logger.info("SegaSurvey Backend Ready!")
        logger.info("=" * 60)

        yield

        # Shutdown
        logger.info("SegaSurvey Backend Shutting down...")

    app = FastAPI(
        title="SegaSurvey API",
        description="Blind human vs AI sega lyric survey",
        version="1.0.0",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(routes_health.router)
    app.include_router(routes_lyrics.router)
    app.include_router(routes_mix.router)

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "service": "SegaSurvey API",
            "version": "1.0.0",
            "docs": "/docs"
        }

    return app


app = create_app()
