from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import numpy as np
import pytest

from segasurvey.core.loaders import LyricCorpus, parse_corpus_rows
from segasurvey.core.lyrics import AILyricRow, Preferences
from segasurvey.core.mixer import LyricMixer
from segasurvey.core.stores import InMemoryAIPoolStore, InMemorySelectionStore

BASE_TIME = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_corpus(records: List[Dict]) -> LyricCorpus:
    items = []
    for record in records:
        item = dict(record)
        item.setdefault("lyrics", f"Lyrics for {item['sid']}")
        items.append(item)
    return parse_corpus_rows(items)


def make_ai_rows(
    session_id: str,
    genres: List[str],
    start: Optional[datetime] = None,
) -> List[AILyricRow]:
    start = start or BASE_TIME
    return [
        AILyricRow(
            session_id=session_id,
            genre=genre,
            id=f"ai-{session_id}-{genre}",
            text=f"AI {genre} sega",
            created_at=start + timedelta(seconds=i),
        )
        for i, genre in enumerate(genres)
    ]


@pytest.fixture
def example_corpus() -> LyricCorpus:
    return make_corpus(
        [
            {"sid": 1, "genre": "tipik", "popularity": 3},
            {"sid": 2, "genre": "tipik", "popularity": 9},
            {"sid": 3, "genre": "romance", "popularity": 5},
            {"sid": 4, "genre": "celebration"},
            {"sid": 5, "genre": "modern"},
            {"sid": 6, "genre": "hotel"},
        ]
    )


@pytest.fixture
def wide_corpus() -> LyricCorpus:
    genres = ["tipik", "engager", "romance", "celebration", "politics", "seggae", "hotel", "modern"]
    return make_corpus(
        [
            {"sid": i, "genre": genres[i % len(genres)], "popularity": i % 10, "age": 20 + i}
            for i in range(1, 33)
        ]
    )


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def ai_pool() -> InMemoryAIPoolStore:
    return InMemoryAIPoolStore()


@pytest.fixture
def selections() -> InMemorySelectionStore:
    return InMemorySelectionStore()


@pytest.fixture
def prefs() -> Preferences:
    return Preferences(age=45, sega_familiarity=5, ai_sentiment=1)


@pytest.fixture
def mixer(wide_corpus, ai_pool, selections, rng) -> LyricMixer:
    return LyricMixer(
        corpus=wide_corpus,
        ai_pool=ai_pool,
        selections=selections,
        rng=rng,
    )
