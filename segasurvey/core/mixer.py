"""
SegaSurvey Lyric Mixer
Human selection + AI pool fetch + blind shuffle for one survey session
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple, Any

import numpy as np

from .errors import EmptyCorpusError, InvalidSelectionSizeError, PoolFetchAnomaly
from .loaders import HumanLyricRow, LyricCorpus
from .lyrics import (
    AILyricRow,
    LyricItem,
    MixResult,
    Preferences,
    color_for_genre,
    display_genre,
    normalize_genre,
)
from .scoring import (
    ScoringWeights,
    fisher_yates_shuffle,
    genre_distribution,
    score_candidates,
    select_with_genre_cap,
)
from ..utils.timing import Timer

logger = logging.getLogger(__name__)

SOURCE_HUMAN = "human"
SOURCE_AI = "ai"
SOURCE_WARM_POOL = "warm_pool"


class LyricMixer:
    """
    Lyric mixer

    Pipeline per session:
    1. Fetch the session's AI lyrics (or the shared warm pool)
    2. Score the human corpus against the participant's preferences
    3. Pick human lyrics with a per-genre cap seeded by the AI genres
    4. Persist the chosen human ids
    5. Shuffle human + AI together (or humans alone in fallback mode)
    """

    def __init__(
        self,
        corpus: LyricCorpus,
        ai_pool: Any,
        selections: Any,
        weights: Optional[ScoringWeights] = None,
        rng: Optional[np.random.Generator] = None,
        human_count: int = 5,
        ai_count: int = 5,
        max_per_genre: int = 3,
        warm_pool_enabled: bool = True
    ):
        """
        Args:
            corpus: human lyric corpus (read-only)
            ai_pool: AI pool store (rows_for_session / recent)
            selections: selection record store (upsert)
            weights: scoring weights
            rng: random source for jitter, exclusion, synthetic ids and shuffle
            human_count: human lyrics per session
            ai_count: AI lyrics per session
            max_per_genre: per-genre cap among the human picks
            warm_pool_enabled: fall back to recent AI lyrics from other sessions
        """
        self.corpus = corpus
        self.ai_pool = ai_pool
        self.selections = selections
        self.weights = weights or ScoringWeights()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.human_count = human_count
        self.ai_count = ai_count
        self.max_per_genre = max_per_genre
        self.warm_pool_enabled = warm_pool_enabled

        logger.info(
            f"Mixer initialized: corpus={len(corpus)}, "
            f"human={human_count}, ai={ai_count}, "
            f"max_per_genre={max_per_genre}, warm_pool={warm_pool_enabled}"
        )

    # ------------------------------------------------------------------
    # Item conversion
    # ------------------------------------------------------------------

    def _human_item(self, row: HumanLyricRow) -> LyricItem:
        return LyricItem(
            id=row.id,
            genre=display_genre(row.genre),
            text=row.text,
            is_ai=False,
            color_tag=color_for_genre(row.genre),
            animation_tag=row.lottie or normalize_genre(row.genre),
            source=SOURCE_HUMAN,
        )

    def _synthetic_id(self, genre: str) -> str:
        token = format(int(self.rng.integers(0, 2**32)), "08x")
        return f"{normalize_genre(genre)}_{token}"

    def _ai_item(self, row: AILyricRow, source: str) -> LyricItem:
        return LyricItem(
            id=row.id or self._synthetic_id(row.genre),
            genre=display_genre(row.genre),
            text=row.text,
            is_ai=True,
            color_tag=color_for_genre(row.genre),
            animation_tag=normalize_genre(row.genre),
            source=source,
        )

    # ------------------------------------------------------------------
    # Human selection
    # ------------------------------------------------------------------

    def select_human_lyrics(
        self,
        prefs: Preferences,
        avoid_genres: Optional[Iterable[str]] = None
    ) -> Tuple[List[LyricItem], List[str]]:
        """
        Pick human lyrics for the participant

        Args:
            prefs: participant preferences
            avoid_genres: genres already used by the paired AI set

        Returns:
            (items, selected_ids) in selection order

        Raises:
            EmptyCorpusError: corpus has no rows
        """
        rows = self.corpus.all_rows()
        if not rows:
            raise EmptyCorpusError("No human lyrics found in corpus")

        scored = score_candidates(rows, prefs, self.weights, self.rng)
        selected = select_with_genre_cap(
            scored,
            k=self.human_count,
            max_per_genre=self.max_per_genre,
            avoid_genres=avoid_genres
        )

        items = [self._human_item(cand.row) for cand in selected]
        selected_ids = [item.id for item in items]

        logger.info(
            "Selected human lyrics: "
            + ", ".join(f"{c.row.id}({c.row.genre}, {c.score:.1f})" for c in selected)
        )
        return items, selected_ids

    # ------------------------------------------------------------------
    # AI pool
    # ------------------------------------------------------------------

    def fetch_ai_lyrics(self, session_id: str) -> List[LyricItem]:
        """
        AI lyrics generated for this session

        - no rows: empty list (caller falls back)
        - ai_count rows: as stored
        - ai_count + 1 rows: one random genre excluded, so the participant
          cannot predict which genres will appear
        - anything else: anomaly logged, first ai_count rows
        """
        rows = self.ai_pool.rows_for_session(session_id)

        if not rows:
            logger.warning(f"No AI lyrics found for session {session_id}")
            return []

        if len(rows) == self.ai_count + 1:
            excluded_idx = int(self.rng.integers(0, len(rows)))
            excluded = rows[excluded_idx]
            rows = [row for i, row in enumerate(rows) if i != excluded_idx]
            logger.info(f"Randomly excluding AI genre: {excluded.genre}")
        elif len(rows) != self.ai_count:
            anomaly = PoolFetchAnomaly(session_id, len(rows), expected=self.ai_count)
            logger.warning(str(anomaly))
            rows = rows[:self.ai_count]

        return [self._ai_item(row, SOURCE_AI) for row in rows]

    def fetch_warm_pool(self) -> List[LyricItem]:
        """
        Most recent AI lyrics from any session, one per genre where possible
        """
        recent = self.ai_pool.recent(self.ai_count * 4)

        picked: List[AILyricRow] = []
        seen_genres = set()
        for row in recent:
            genre = normalize_genre(row.genre)
            if genre in seen_genres:
                continue
            picked.append(row)
            seen_genres.add(genre)
            if len(picked) >= self.ai_count:
                break

        # Fewer distinct genres than slots: repeat genres
        if len(picked) < self.ai_count:
            for row in recent:
                if row in picked:
                    continue
                picked.append(row)
                if len(picked) >= self.ai_count:
                    break

        return [self._ai_item(row, SOURCE_WARM_POOL) for row in picked]

    def _fetch_ai_set(self, session_id: str) -> Tuple[List[LyricItem], Optional[str]]:
        """AI set for the mix: session rows, then warm pool; partial sets are dropped"""
        items = self.fetch_ai_lyrics(session_id)
        source: Optional[str] = SOURCE_AI

        if not items and self.warm_pool_enabled:
            items = self.fetch_warm_pool()
            source = SOURCE_WARM_POOL
            if items:
                logger.info(f"Using {len(items)} warm pool AI lyrics for session {session_id}")

        if len(items) != self.ai_count:
            if items:
                logger.warning(
                    f"Incomplete AI set for session {session_id} "
                    f"({len(items)}/{self.ai_count}), using fallback mode"
                )
            return [], None

        return items, source

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def record_selected_human_ids(self, session_id: str, ids: List[str]) -> Dict[str, Any]:
        """
        Upsert the chosen human ids for the session

        Raises:
            InvalidSelectionSizeError: ids is not exactly human_count long
        """
        if ids is None or len(ids) != self.human_count:
            raise InvalidSelectionSizeError(self.human_count, len(ids or []))

        record = self.selections.upsert(session_id, list(ids))
        logger.info(f"Saved selected ids for session {session_id}: [{', '.join(ids)}]")
        return record

    # ------------------------------------------------------------------
    # Mix
    # ------------------------------------------------------------------

    def mix(self, session_id: str, prefs: Preferences) -> MixResult:
        """
        Build the display list for a session

        Args:
            session_id: survey session id
            prefs: participant preferences

        Returns:
            MixResult with human_count + ai_count items, or human_count
            items in fallback mode

        Raises:
            EmptyCorpusError: no human lyrics
            InvalidSelectionSizeError: corpus too small for a full selection
        """
        with Timer(f"mix session={session_id}"):
            # 1) AI set (session pool or warm pool)
            ai_items, ai_source = self._fetch_ai_set(session_id)

            # 2) Human selection, steering away from the AI genres
            avoid_genres = [item.genre for item in ai_items]
            human_items, selected_ids = self.select_human_lyrics(prefs, avoid_genres)

            # 3) Persist
            self.record_selected_human_ids(session_id, selected_ids)

            # 4) Shuffle
            fallback_mode = not ai_items
            if fallback_mode:
                logger.warning(f"No AI lyrics available for session {session_id}, using fallback mode")
                combined = human_items
            else:
                combined = human_items + ai_items

            shuffled = fisher_yates_shuffle(combined, self.rng)
            items = [replace(item, display_index=i) for i, item in enumerate(shuffled, 1)]

        result = MixResult(
            items=items,
            human_count=len(human_items),
            ai_count=len(ai_items),
            selected_human_ids=selected_ids,
            fallback_mode=fallback_mode,
            ai_source=ai_source,
            genre_distribution=genre_distribution(item.genre for item in items),
        )
        logger.info(
            f"Mixed session {session_id}: total={result.total_count}, "
            f"human={result.human_count}, ai={result.ai_count}, fallback={fallback_mode}"
        )
        return result
