"""
SegaSurvey Lyric Model
Lyric items, participant preferences and legacy flat-row adapters
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Union


# =============================================================================
# Genres
# =============================================================================

# Genre order of the legacy one-row-per-session AI table
LEGACY_GENRES = ["politics", "engager", "romance", "celebration", "tipik", "seggae"]

# "-" marks a genre the generator skipped
LEGACY_EMPTY = "-"

GENRE_COLORS: Dict[str, str] = {
    "romance": "pink",
    "politics": "blue",
    "celebration": "purple",
    "tipik": "yellow",
    "engager": "gray",
    "seggae": "mint",
}
DEFAULT_COLOR = "blue"


def normalize_genre(genre: Optional[str]) -> str:
    """Case-insensitive genre key"""
    if not isinstance(genre, str):
        return ""
    return genre.strip().lower()


def display_genre(genre: Optional[str]) -> str:
    """Genre label as shown on the card ("tipik" -> "Tipik")"""
    return normalize_genre(genre).capitalize()


def color_for_genre(genre: Optional[str]) -> str:
    """
    Genre color tag.

    Human and AI items share the mapping so the card colour never gives
    away provenance.
    """
    key = normalize_genre(genre)
    for name, color in GENRE_COLORS.items():
        if name in key:
            return color
    return DEFAULT_COLOR


# =============================================================================
# Items
# =============================================================================

@dataclass(frozen=True)
class LyricItem:
    """One lyric card shown to the participant"""
    id: str
    genre: str
    text: str
    is_ai: bool
    color_tag: str
    animation_tag: str
    source: str = "human"  # "human" | "ai" | "warm_pool"
    display_index: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "genre": self.genre,
            "text": self.text,
            "is_ai": self.is_ai,
            "source": self.source,
            "color_tag": self.color_tag,
            "animation_tag": self.animation_tag,
            "display_index": self.display_index,
        }


@dataclass(frozen=True)
class AILyricRow:
    """One generated lyric in the AI pool, keyed by (session_id, genre)"""
    session_id: str
    genre: str
    id: Optional[str]
    text: str
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))

    def as_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "genre": self.genre,
            "id": self.id,
            "text": self.text,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AILyricRow":
        created_raw = data.get("created_at")
        if isinstance(created_raw, datetime):
            created_at = created_raw
        elif created_raw:
            created_at = datetime.fromisoformat(str(created_raw))
        else:
            created_at = datetime.now(tz=timezone.utc)
        # Legacy rows carry naive timestamps; the pool stores UTC
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        ai_id = data.get("id")
        return cls(
            session_id=str(data["session_id"]),
            genre=str(data["genre"]),
            id=str(ai_id) if ai_id not in (None, "") else None,
            text=str(data.get("text") or ""),
            created_at=created_at,
        )


# =============================================================================
# Preferences
# =============================================================================

# Questionnaire answers for "how do you feel about AI music"
SENTIMENT_VALUES: Dict[str, int] = {
    "hate": 1,
    "no": 2,
    "neutral": 3,
    "ok": 4,
    "pro": 5,
}


def sentiment_to_value(sentiment: Union[int, str, None]) -> Optional[int]:
    """
    AI sentiment as 1..5.

    Accepts the integer scale directly or the questionnaire enum
    (hate/no/neutral/ok/pro). Returns None for anything else.
    """
    if sentiment is None or isinstance(sentiment, bool):
        return None
    if isinstance(sentiment, int):
        return sentiment if 1 <= sentiment <= 5 else None
    key = str(sentiment).strip().lower()
    if key.isdigit():
        return sentiment_to_value(int(key))
    return SENTIMENT_VALUES.get(key)


def age_from_birthday(birthday: Optional[str], today: Optional[date] = None) -> Optional[int]:
    """Age in whole years from an ISO birthday (YYYY-MM-DD)"""
    if not birthday:
        return None
    try:
        born = date.fromisoformat(birthday[:10])
    except ValueError:
        return None
    today = today or date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


@dataclass(frozen=True)
class Preferences:
    """Participant answers used for scoring (read-only)"""
    age: Optional[int]
    sega_familiarity: int
    ai_sentiment: int

    @classmethod
    def from_answers(
        cls,
        sega_familiarity: int,
        ai_sentiment: Union[int, str],
        age: Optional[int] = None,
        birthday: Optional[str] = None,
    ) -> "Preferences":
        """
        Build preferences from raw questionnaire answers

        Raises:
            ValueError: familiarity or sentiment outside 1..5
        """
        if not 1 <= int(sega_familiarity) <= 5:
            raise ValueError(f"sega_familiarity must be 1..5, got {sega_familiarity}")
        sentiment = sentiment_to_value(ai_sentiment)
        if sentiment is None:
            raise ValueError(f"Unrecognised ai_sentiment: {ai_sentiment!r}")
        if age is None:
            age = age_from_birthday(birthday)
        return cls(age=age, sega_familiarity=int(sega_familiarity), ai_sentiment=sentiment)


# =============================================================================
# Mix result
# =============================================================================

@dataclass
class MixResult:
    """Display list plus bookkeeping for one participant"""
    items: List[LyricItem]
    human_count: int
    ai_count: int
    selected_human_ids: List[str]
    fallback_mode: bool
    ai_source: Optional[str] = None  # "ai" | "warm_pool" | None
    genre_distribution: Dict[str, int] = field(default_factory=dict)

    @property
    def total_count(self) -> int:
        return len(self.items)

    def metadata(self) -> Dict[str, Any]:
        return {
            "total_count": self.total_count,
            "human_count": self.human_count,
            "ai_count": self.ai_count,
            "fallback_mode": self.fallback_mode,
            "ai_source": self.ai_source,
            "genre_distribution": dict(self.genre_distribution),
            "selected_human_ids": list(self.selected_human_ids),
        }


# =============================================================================
# Legacy flat-row adapters
# =============================================================================

def flat_row_to_ai_rows(row: Dict[str, Any], session_id: str) -> List[AILyricRow]:
    """
    Legacy survey_ai_lyrics row -> canonical AI rows

    The legacy table stores one row per session with columns
    `<genre>_ai_id` and `<genre>_ai_sega` for each of LEGACY_GENRES.
    Genres with no text or "-" are skipped.
    """
    created_raw = row.get("created_at")
    rows: List[AILyricRow] = []
    for genre in LEGACY_GENRES:
        text = row.get(f"{genre}_ai_sega")
        if not text or text == LEGACY_EMPTY:
            continue
        ai_id = row.get(f"{genre}_ai_id")
        payload = {
            "session_id": session_id,
            "genre": genre,
            "id": ai_id,
            "text": text,
            "created_at": created_raw,
        }
        rows.append(AILyricRow.from_dict(payload))
    return rows


def ai_rows_to_flat_row(rows: List[AILyricRow], session_id: str) -> Dict[str, Any]:
    """
    Canonical AI rows -> legacy survey_ai_lyrics row

    Legacy genres without a row are filled with "-". Rows of other
    genres have no legacy column and are dropped.
    """
    by_genre = {normalize_genre(r.genre): r for r in rows}
    flat: Dict[str, Any] = {"session_id": session_id}
    for genre in LEGACY_GENRES:
        ai_row = by_genre.get(genre)
        if ai_row is None:
            flat[f"{genre}_ai_id"] = LEGACY_EMPTY
            flat[f"{genre}_ai_sega"] = LEGACY_EMPTY
        else:
            flat[f"{genre}_ai_id"] = ai_row.id if ai_row.id is not None else LEGACY_EMPTY
            flat[f"{genre}_ai_sega"] = ai_row.text
    return flat
