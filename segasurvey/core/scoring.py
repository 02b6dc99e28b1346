"""
SegaSurvey Scoring Utilities
Preference-based human lyric scoring, genre-capped selection and shuffling
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, TypeVar

import numpy as np

from .loaders import HumanLyricRow
from .lyrics import Preferences, normalize_genre

T = TypeVar("T")


# =============================================================================
# Genre groups
# =============================================================================

TRADITIONAL_GENRES: Set[str] = {"tipik", "traditional"}
MODERN_GENRES: Set[str] = {"engager", "celebration", "modern"}
EXPERIMENTAL_GENRES: Set[str] = {"engager", "modern"}


@dataclass(frozen=True)
class AgeBracket:
    """Inclusive age range favouring a set of genres (max_age=None: open ended)"""
    min_age: int
    max_age: Optional[int]
    genres: frozenset

    def contains(self, age: float) -> bool:
        if age < self.min_age:
            return False
        return self.max_age is None or age <= self.max_age


# Non-overlapping, so at most one bracket applies to an age
DEFAULT_AGE_BRACKETS: Tuple[AgeBracket, ...] = (
    AgeBracket(18, 30, frozenset({"modern", "engager"})),
    AgeBracket(40, 59, frozenset({"hotel"})),
    AgeBracket(60, None, frozenset({"tipik"})),
)


@dataclass(frozen=True)
class ScoringWeights:
    """Tunable heuristic weights"""
    age_window: float = 10.0
    popularity_weight: float = 2.0
    comments_weight: float = 1.5
    familiarity_bonus: float = 15.0
    sentiment_bonus: float = 10.0
    age_bracket_bonus: float = 12.0
    jitter_max: float = 5.0
    age_brackets: Tuple[AgeBracket, ...] = field(default=DEFAULT_AGE_BRACKETS)


@dataclass
class ScoredCandidate:
    """Corpus row with its transient selection score"""
    row: HumanLyricRow
    score: float


# =============================================================================
# Score components
# =============================================================================

def age_proximity_score(candidate_age: Optional[float], age: Optional[int], window: float = 10.0) -> float:
    """max(0, window - |age diff|), 0 when either age is missing"""
    if candidate_age is None or age is None:
        return 0.0
    return max(0.0, window - abs(candidate_age - age))


def familiarity_bonus(genre: str, sega_familiarity: int, bonus: float = 15.0) -> float:
    """
    Familiar listeners get traditional sega, newcomers get the popular genres
    """
    if sega_familiarity >= 4 and genre in TRADITIONAL_GENRES:
        return bonus
    if sega_familiarity <= 2 and genre in MODERN_GENRES:
        return bonus
    return 0.0


def sentiment_bonus(genre: str, ai_sentiment: int, bonus: float = 10.0) -> float:
    """AI enthusiasts get experimental genres, skeptics get traditional ones"""
    if ai_sentiment >= 4 and genre in EXPERIMENTAL_GENRES:
        return bonus
    if ai_sentiment <= 2 and genre in TRADITIONAL_GENRES:
        return bonus
    return 0.0


def age_bracket_bonus(
    genre: str,
    age: Optional[int],
    brackets: Sequence[AgeBracket] = DEFAULT_AGE_BRACKETS,
    bonus: float = 12.0
) -> float:
    """Bonus when the genre is tied to the participant's age bracket"""
    if age is None:
        return 0.0
    for bracket in brackets:
        if bracket.contains(age):
            return bonus if genre in bracket.genres else 0.0
    return 0.0


def base_score(row: HumanLyricRow, prefs: Preferences, weights: ScoringWeights) -> float:
    """Deterministic part of the score (everything except jitter)"""
    genre = normalize_genre(row.genre)
    score = age_proximity_score(row.age, prefs.age, weights.age_window)

    if row.popularity is not None:
        score += row.popularity * weights.popularity_weight
    if row.comments_density is not None:
        score += row.comments_density * weights.comments_weight

    score += familiarity_bonus(genre, prefs.sega_familiarity, weights.familiarity_bonus)
    score += sentiment_bonus(genre, prefs.ai_sentiment, weights.sentiment_bonus)
    score += age_bracket_bonus(genre, prefs.age, weights.age_brackets, weights.age_bracket_bonus)
    return score


def score_candidates(
    rows: Sequence[HumanLyricRow],
    prefs: Preferences,
    weights: ScoringWeights,
    rng: np.random.Generator
) -> List[ScoredCandidate]:
    """
    Score every row and sort descending

    Jitter is uniform in [0, jitter_max) so identical preferences do not
    always yield the same lyrics.
    """
    if not rows:
        return []

    base = np.array([base_score(row, prefs, weights) for row in rows], dtype=float)
    jitter = rng.uniform(0.0, weights.jitter_max, size=len(rows)) if weights.jitter_max > 0 else 0.0
    totals = base + jitter

    scored = [ScoredCandidate(row=row, score=float(total)) for row, total in zip(rows, totals)]
    scored.sort(key=lambda c: c.score, reverse=True)
    return scored


# =============================================================================
# Selection
# =============================================================================

def select_with_genre_cap(
    candidates: Sequence[ScoredCandidate],
    k: int,
    max_per_genre: int = 3,
    avoid_genres: Optional[Iterable[str]] = None
) -> List[ScoredCandidate]:
    """
    Greedy top-k with a per-genre cap

    The genre counter starts pre-seeded with `avoid_genres` (the genres
    already on screen from the AI set). When the cap leaves slots empty,
    a second pass fills them from the sorted list ignoring the cap.

    Args:
        candidates: scored rows, best first
        k: number of rows to select
        max_per_genre: cap on the running genre count
        avoid_genres: genres (with repeats) to seed the counter with

    Returns:
        selected candidates in selection order
    """
    genre_counts: Counter = Counter(normalize_genre(g) for g in (avoid_genres or []))
    selected: List[ScoredCandidate] = []
    selected_ids: Set[str] = set()

    for cand in candidates:
        if len(selected) >= k:
            break
        if cand.row.id in selected_ids:
            continue
        genre = normalize_genre(cand.row.genre)
        if genre_counts[genre] + 1 > max_per_genre:
            continue
        selected.append(cand)
        selected_ids.add(cand.row.id)
        genre_counts[genre] += 1

    # Not enough genre diversity: fill the rest without the cap
    if len(selected) < k:
        for cand in candidates:
            if len(selected) >= k:
                break
            if cand.row.id in selected_ids:
                continue
            selected.append(cand)
            selected_ids.add(cand.row.id)

    return selected


def genre_distribution(genres: Iterable[str]) -> Dict[str, int]:
    """Normalized genre -> count"""
    return dict(Counter(normalize_genre(g) for g in genres))


# =============================================================================
# Shuffle
# =============================================================================

def fisher_yates_shuffle(items: Sequence[T], rng: np.random.Generator) -> List[T]:
    """Unbiased shuffle into a new list (input untouched)"""
    result = list(items)
    order = rng.permutation(len(result))
    return [result[int(i)] for i in order]
