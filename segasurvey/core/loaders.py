"""
SegaSurvey Data Loaders
Human lyric corpus loader (survey_data export)
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Any
from dataclasses import dataclass

from ..utils.timing import timed

logger = logging.getLogger(__name__)

# Text of rows that were inserted before their lyrics were transcribed
PENDING_TEXT = "pending"


@dataclass
class HumanLyricRow:
    """Human-written lyric from the corpus"""
    id: str
    genre: str
    text: str
    age: Optional[float] = None
    popularity: Optional[float] = None
    comments_density: Optional[float] = None
    color_code: Optional[str] = None
    lottie: Optional[str] = None


@dataclass
class LyricCorpus:
    """Read-only human lyric registry"""
    rows: Dict[str, HumanLyricRow]
    row_ids: List[str]

    def all_rows(self) -> List[HumanLyricRow]:
        return [self.rows[rid] for rid in self.row_ids]

    def get(self, row_id: str) -> Optional[HumanLyricRow]:
        return self.rows.get(str(row_id))

    def __len__(self) -> int:
        return len(self.row_ids)


def _extract_field(item: Dict, candidates: List[str], default: str = "") -> str:
    """Pick the first present key"""
    for key in candidates:
        if key in item:
            val = item[key]
            if isinstance(val, list):
                return ", ".join(str(v) for v in val)
            return str(val) if val else default
    return default


def _parse_number(value: Any) -> Optional[float]:
    """Optional numeric column (empty string and null mean missing)"""
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def parse_corpus_rows(items: List[Any]) -> LyricCorpus:
    """
    Raw survey_data records -> LyricCorpus

    Records without an id, without text, or still marked "pending" are
    skipped. Duplicate ids keep the first record.
    """
    rows: Dict[str, HumanLyricRow] = {}
    row_ids: List[str] = []

    for item in items:
        if not isinstance(item, dict):
            continue

        # sid (survey_data) or id
        rid_raw = item.get("sid", item.get("id"))
        if rid_raw is None or rid_raw == "":
            continue
        rid = str(rid_raw)

        text = _extract_field(item, ["lyrics", "text"], default="")
        if not text.strip() or text.strip().lower() == PENDING_TEXT:
            logger.debug(f"Skipping placeholder row: {rid}")
            continue

        if rid in rows:
            logger.debug(f"Skipping duplicate row id: {rid}")
            continue

        row = HumanLyricRow(
            id=rid,
            genre=_extract_field(item, ["genre"], default=""),
            text=text,
            age=_parse_number(item.get("age")),
            popularity=_parse_number(item.get("popularity")),
            comments_density=_parse_number(
                item.get("comments_density", item.get("commentsDensity"))
            ),
            color_code=item.get("color_code"),
            lottie=item.get("lottie"),
        )
        rows[rid] = row
        row_ids.append(rid)

    return LyricCorpus(rows=rows, row_ids=row_ids)


def _demo_corpus() -> LyricCorpus:
    """Synthetic corpus covering every genre"""
    demo_genres = ["tipik", "engager", "romance", "celebration", "politics", "seggae", "hotel", "modern"]
    items = []
    for i in range(1, 41):
        genre = demo_genres[i % len(demo_genres)]
        items.append({
            "sid": i,
            "genre": genre,
            "lyrics": f"Demo {genre} sega {i}\nAnn dansé, ann dansé lor sab",
            "age": 18 + (i * 7) % 60,
            "popularity": (i * 3) % 10 + 1,
            "comments_density": (i % 5) / 2,
        })
    return parse_corpus_rows(items)


@timed
def load_lyric_corpus(path: str, demo_mode: bool) -> LyricCorpus:
    """
    Load the human lyric corpus JSON

    Args:
        path: JSON file path (list of records, or id -> record mapping)
        demo_mode: synthesize a corpus when the file is missing

    Returns:
        LyricCorpus

    Raises:
        RuntimeError: corpus missing or empty outside demo mode
    """
    corpus = LyricCorpus(rows={}, row_ids=[])
    file_path = Path(path) if path else None

    if file_path and file_path.exists():
        try:
            logger.info(f"Loading lyric corpus: {file_path}")
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)

            items = []
            if isinstance(data, list):
                items = data
            elif isinstance(data, dict):
                if all(isinstance(v, dict) for v in data.values()):
                    # Mapping key is the row id unless the record has its own
                    items = [
                        dict(v, sid=v.get("sid", v.get("id", k)))
                        for k, v in data.items()
                    ]
                else:
                    items = [data]

            corpus = parse_corpus_rows(items)
            logger.info(f"Lyric corpus loaded: {len(corpus):,} rows")

        except Exception as e:
            logger.error(f"Failed to load lyric corpus: {e}")
            if not demo_mode:
                raise RuntimeError(f"Failed to load lyric corpus: {e}")

    if len(corpus) == 0 and demo_mode:
        logger.warning("Demo mode: generating synthetic lyric corpus")
        corpus = _demo_corpus()
        logger.info(f"Synthetic corpus ready: {len(corpus):,} rows")

    if len(corpus) == 0 and not demo_mode:
        raise RuntimeError(f"Lyric corpus is empty: {path}")

    return corpus
