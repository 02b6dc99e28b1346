"""
SegaSurvey Stores
AI lyric pool and human selection records (Redis and in-memory)
"""

import heapq
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import redis

from .lyrics import AILyricRow, normalize_genre

logger = logging.getLogger(__name__)


class RedisClient:
    """Redis connection wrapper"""

    def __init__(self, redis_url: str):
        """
        Args:
            redis_url: Redis URL (e.g. redis://localhost:6379/0)
        """
        self.redis_url = redis_url
        self._client: Optional[redis.Redis] = None
        self._connected = False
        self._connect()

    def _connect(self) -> None:
        """Try to connect"""
        try:
            self._client = redis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2
            )
            self._client.ping()
            self._connected = True
            logger.info(f"Redis connected: {self.redis_url}")
        except Exception as e:
            logger.warning(f"Redis connection failed (using in-memory stores): {e}")
            self._connected = False
            self._client = None

    @property
    def client(self) -> Optional[redis.Redis]:
        return self._client

    @property
    def is_connected(self) -> bool:
        """Connection state"""
        if not self._client:
            return False
        try:
            self._client.ping()
            return True
        except Exception:
            self._connected = False
            return False

    def ping(self) -> bool:
        """Redis ping"""
        return self.is_connected


# =============================================================================
# Selection records
# =============================================================================

def selection_record(session_id: str, ids: Sequence[str]) -> Dict[str, Any]:
    """
    Fixed-width selection record

    Format: {"session_id", "sid1".."sidN", "updated_at"}
    """
    record: Dict[str, Any] = {"session_id": session_id}
    for i, sid in enumerate(ids, 1):
        record[f"sid{i}"] = str(sid)
    record["updated_at"] = datetime.now(tz=timezone.utc).isoformat()
    return record


def ids_from_record(record: Dict[str, Any]) -> List[str]:
    """sid1..sidN back to an ordered id list"""
    ids = []
    i = 1
    while f"sid{i}" in record:
        ids.append(record[f"sid{i}"])
        i += 1
    return ids


class InMemorySelectionStore:
    """Selection records keyed by session (tests / no Redis)"""

    backend = "memory"

    def __init__(self):
        self._records: Dict[str, Dict[str, Any]] = {}

    def upsert(self, session_id: str, ids: Sequence[str]) -> Dict[str, Any]:
        record = selection_record(session_id, ids)
        self._records[session_id] = record
        return record

    def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        record = self._records.get(session_id)
        return dict(record) if record is not None else None

    def __len__(self) -> int:
        return len(self._records)


class RedisSelectionStore:
    """
    Selection records in Redis

    One string key per session, so a repeated upsert overwrites.
    Key: {prefix}:selection:{session_id}
    """

    backend = "redis"

    def __init__(self, client: redis.Redis, prefix: str = "segasurvey"):
        self._client = client
        self.prefix = prefix

    def _key(self, session_id: str) -> str:
        return f"{self.prefix}:selection:{session_id}"

    def upsert(self, session_id: str, ids: Sequence[str]) -> Dict[str, Any]:
        record = selection_record(session_id, ids)
        self._client.set(self._key(session_id), json.dumps(record, ensure_ascii=False))
        return record

    def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        data = self._client.get(self._key(session_id))
        if not data:
            return None
        return json.loads(data)


# =============================================================================
# AI lyric pool
# =============================================================================

def _row_order(row: AILyricRow) -> Tuple[datetime, str]:
    return (row.created_at, normalize_genre(row.genre))


class InMemoryAIPoolStore:
    """AI pool rows keyed by (session_id, genre) (tests / no Redis)"""

    backend = "memory"

    def __init__(self):
        self._rows: Dict[Tuple[str, str], AILyricRow] = {}

    def add(self, row: AILyricRow) -> bool:
        """Write-once per (session, genre). False if the genre already exists."""
        key = (row.session_id, normalize_genre(row.genre))
        if key in self._rows:
            return False
        self._rows[key] = row
        return True

    def rows_for_session(self, session_id: str) -> List[AILyricRow]:
        rows = [row for (sid, _), row in self._rows.items() if sid == session_id]
        return sorted(rows, key=_row_order)

    def recent(self, limit: int) -> List[AILyricRow]:
        """Most recent rows across all sessions"""
        return heapq.nlargest(limit, self._rows.values(), key=_row_order)


class RedisAIPoolStore:
    """
    AI pool rows in Redis

    Keys:
        {prefix}:ai_pool:{session_id}  hash genre -> row JSON
        {prefix}:ai_pool:recent        zset "{session_id}|{genre}" scored by created_at,
                                       capped at recent_limit entries
    """

    backend = "redis"

    def __init__(self, client: redis.Redis, prefix: str = "segasurvey", recent_limit: int = 500):
        self._client = client
        self.prefix = prefix
        self.recent_limit = recent_limit

    def _session_key(self, session_id: str) -> str:
        return f"{self.prefix}:ai_pool:{session_id}"

    @property
    def _recent_key(self) -> str:
        return f"{self.prefix}:ai_pool:recent"

    def add(self, row: AILyricRow) -> bool:
        genre = normalize_genre(row.genre)
        payload = json.dumps(row.as_dict(), ensure_ascii=False)
        member = f"{row.session_id}|{genre}"

        # Row and recency entry land together. zadd nx keeps the score of an
        # existing entry when the row itself is a duplicate.
        pipe = self._client.pipeline(transaction=True)
        pipe.hsetnx(self._session_key(row.session_id), genre, payload)
        pipe.zadd(self._recent_key, {member: row.created_at.timestamp()}, nx=True)
        pipe.zremrangebyrank(self._recent_key, 0, -(self.recent_limit + 1))
        created, _, _ = pipe.execute()
        return bool(created)

    def rows_for_session(self, session_id: str) -> List[AILyricRow]:
        raw = self._client.hgetall(self._session_key(session_id))
        rows = [AILyricRow.from_dict(json.loads(v)) for v in raw.values()]
        return sorted(rows, key=_row_order)

    def recent(self, limit: int) -> List[AILyricRow]:
        if limit <= 0:
            return []
        members = self._client.zrevrange(self._recent_key, 0, limit - 1)
        rows: List[AILyricRow] = []
        for member in members:
            session_id, _, genre = member.rpartition("|")
            data = self._client.hget(self._session_key(session_id), genre)
            if data is None:
                # Session hash expired or was removed
                logger.debug(f"Stale warm pool entry: {member}")
                continue
            rows.append(AILyricRow.from_dict(json.loads(data)))
        return rows
