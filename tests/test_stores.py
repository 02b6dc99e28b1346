from __future__ import annotations

from typing import Dict, List

from segasurvey.core.lyrics import AILyricRow
from segasurvey.core.stores import (
    InMemoryAIPoolStore,
    InMemorySelectionStore,
    RedisAIPoolStore,
    RedisClient,
    RedisSelectionStore,
    ids_from_record,
    selection_record,
)

from conftest import BASE_TIME, make_ai_rows


class StubRedis:
    """The handful of redis-py commands the stores use (decode_responses=True)"""

    def __init__(self) -> None:
        self.strings: Dict[str, str] = {}
        self.hashes: Dict[str, Dict[str, str]] = {}
        self.zsets: Dict[str, Dict[str, float]] = {}
        self.transactions: List[bool] = []

    def set(self, key: str, value: str) -> bool:
        self.strings[key] = value
        return True

    def get(self, key: str):
        return self.strings.get(key)

    def hsetnx(self, key: str, field: str, value: str) -> int:
        bucket = self.hashes.setdefault(key, {})
        if field in bucket:
            return 0
        bucket[field] = value
        return 1

    def hget(self, key: str, field: str):
        return self.hashes.get(key, {}).get(field)

    def hgetall(self, key: str) -> Dict[str, str]:
        return dict(self.hashes.get(key, {}))

    def zadd(self, key: str, mapping: Dict[str, float], nx: bool = False) -> int:
        zset = self.zsets.setdefault(key, {})
        added = 0
        for member, score in mapping.items():
            if nx and member in zset:
                continue
            added += member not in zset
            zset[member] = score
        return added

    def zremrangebyrank(self, key: str, start: int, end: int) -> int:
        members = [m for m, _ in sorted(self.zsets.get(key, {}).items(), key=lambda kv: kv[1])]
        stop = len(members) + end + 1 if end < 0 else end + 1
        doomed = members[start:max(stop, 0)]
        for member in doomed:
            del self.zsets[key][member]
        return len(doomed)

    def pipeline(self, transaction: bool = True) -> "StubPipeline":
        self.transactions.append(transaction)
        return StubPipeline(self)

    def zrevrange(self, key: str, start: int, end: int) -> List[str]:
        members = sorted(self.zsets.get(key, {}).items(), key=lambda kv: kv[1], reverse=True)
        return [m for m, _ in members][start:end + 1]


class StubPipeline:
    """Queues commands and runs them on execute()"""

    def __init__(self, client: StubRedis) -> None:
        self._client = client
        self._calls: List = []

    def __getattr__(self, name: str):
        def queue(*args, **kwargs):
            self._calls.append((name, args, kwargs))
            return self
        return queue

    def execute(self) -> List:
        return [getattr(self._client, name)(*args, **kwargs) for name, args, kwargs in self._calls]


def test_selection_record_is_fixed_width() -> None:
    record = selection_record("s1", ["4", "8", "15", "16", "23"])

    assert record["session_id"] == "s1"
    assert [record[f"sid{i}"] for i in range(1, 6)] == ["4", "8", "15", "16", "23"]
    assert "updated_at" in record
    assert ids_from_record(record) == ["4", "8", "15", "16", "23"]


def test_in_memory_selection_store_overwrites() -> None:
    store = InMemorySelectionStore()
    store.upsert("s1", ["1", "2", "3", "4", "5"])
    store.upsert("s1", ["5", "4", "3", "2", "1"])

    assert len(store) == 1
    assert ids_from_record(store.get("s1")) == ["5", "4", "3", "2", "1"]
    assert store.get("other") is None


def test_redis_selection_store_overwrites() -> None:
    client = StubRedis()
    store = RedisSelectionStore(client, prefix="test")
    store.upsert("s1", ["1", "2", "3", "4", "5"])
    store.upsert("s1", ["6", "7", "8", "9", "10"])

    assert list(client.strings) == ["test:selection:s1"]
    assert ids_from_record(store.get("s1")) == ["6", "7", "8", "9", "10"]
    assert store.get("missing") is None


def test_in_memory_pool_is_write_once_per_genre() -> None:
    pool = InMemoryAIPoolStore()
    first, = make_ai_rows("s1", ["romance"])
    again = AILyricRow(session_id="s1", genre="Romance", id="x", text="other")

    assert pool.add(first)
    assert not pool.add(again)
    assert pool.rows_for_session("s1") == [first]


def test_in_memory_pool_recent_across_sessions() -> None:
    pool = InMemoryAIPoolStore()
    for row in make_ai_rows("a", ["tipik", "romance"]):
        pool.add(row)
    later = BASE_TIME.replace(hour=13)
    for row in make_ai_rows("b", ["seggae"], start=later):
        pool.add(row)

    recent = pool.recent(2)
    assert [(r.session_id, r.genre) for r in recent] == [("b", "seggae"), ("a", "romance")]


def test_redis_pool_round_trips_rows() -> None:
    client = StubRedis()
    pool = RedisAIPoolStore(client, prefix="test")
    rows = make_ai_rows("s1", ["tipik", "romance", "politics"])
    for row in rows:
        assert pool.add(row)

    assert not pool.add(AILyricRow(session_id="s1", genre="TIPIK", id=None, text="dup"))
    assert pool.rows_for_session("s1") == rows
    assert pool.rows_for_session("s2") == []
    assert "test:ai_pool:s1" in client.hashes


def test_redis_pool_recent_skips_stale_members() -> None:
    client = StubRedis()
    pool = RedisAIPoolStore(client, prefix="test")
    for row in make_ai_rows("a|b", ["tipik", "romance"]):
        pool.add(row)
    client.zsets["test:ai_pool:recent"]["gone|seggae"] = BASE_TIME.timestamp() + 100

    recent = pool.recent(3)
    assert [(r.session_id, r.genre) for r in recent] == [("a|b", "romance"), ("a|b", "tipik")]
    assert pool.recent(0) == []


def test_redis_client_without_server_is_disconnected() -> None:
    client = RedisClient("not-a-redis-url")

    assert client.client is None
    assert client.ping() is False


def test_redis_pool_writes_row_and_index_in_one_transaction() -> None:
    client = StubRedis()
    pool = RedisAIPoolStore(client, prefix="test")
    row, = make_ai_rows("s1", ["tipik"])

    assert pool.add(row)
    assert client.transactions == [True]
    assert client.zsets["test:ai_pool:recent"] == {"s1|tipik": row.created_at.timestamp()}


def test_redis_pool_duplicate_keeps_original_index_score() -> None:
    client = StubRedis()
    pool = RedisAIPoolStore(client, prefix="test")
    first, = make_ai_rows("s1", ["tipik"])
    later, = make_ai_rows("s1", ["tipik"], start=BASE_TIME.replace(hour=18))

    assert pool.add(first)
    assert not pool.add(later)
    assert client.zsets["test:ai_pool:recent"]["s1|tipik"] == first.created_at.timestamp()


def test_redis_pool_index_is_capped() -> None:
    client = StubRedis()
    pool = RedisAIPoolStore(client, prefix="test", recent_limit=3)
    for row in make_ai_rows("s1", ["politics", "engager", "romance", "celebration", "tipik"]):
        pool.add(row)

    assert set(client.zsets["test:ai_pool:recent"]) == {"s1|romance", "s1|celebration", "s1|tipik"}
    assert [r.genre for r in pool.recent(5)] == ["tipik", "celebration", "romance"]
    # Rows outside the index stay readable for their own session
    assert len(pool.rows_for_session("s1")) == 5


def test_in_memory_pool_recent_handles_limits() -> None:
    pool = InMemoryAIPoolStore()
    for row in make_ai_rows("a", ["tipik", "romance", "seggae"]):
        pool.add(row)

    assert [r.genre for r in pool.recent(2)] == ["seggae", "romance"]
    assert len(pool.recent(10)) == 3
    assert pool.recent(0) == []
