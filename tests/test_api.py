from __future__ import annotations

from fastapi.testclient import TestClient

from segasurvey.core.config import Settings
from segasurvey.main import create_app

FIVE_GENRES = ["politics", "engager", "romance", "celebration", "tipik"]


def _client(**overrides) -> TestClient:
    params = {"REDIS_URL": "", "DEMO_MODE": True, "CORPUS_PATH": "", "RANDOM_SEED": 3}
    params.update(overrides)
    return TestClient(create_app(Settings(**params)))


def _mix_payload(session_id: str, **overrides) -> dict:
    payload = {"session_id": session_id, "age": 27, "sega_familiarity": 2, "ai_sentiment": "pro"}
    payload.update(overrides)
    return payload


def test_create_app() -> None:
    app = create_app(Settings(REDIS_URL=""))
    assert app.title == "SegaSurvey API"


def test_root_and_health() -> None:
    with _client() as client:
        assert client.get("/").json()["service"] == "SegaSurvey API"

        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["corpus_loaded"] is True
        assert body["corpus_count"] > 0
        assert body["store_backend"] == "memory"
        assert body["redis_connected"] is False


def test_mix_falls_back_without_ai_lyrics() -> None:
    with _client() as client:
        response = client.post("/mix-lyrics", json=_mix_payload("s-empty"))
        assert response.status_code == 200
        body = response.json()

        assert body["success"] is True
        assert body["session_id"] == "s-empty"
        assert len(body["lyrics"]) == 5
        assert body["metadata"]["fallback_mode"] is True
        assert body["metadata"]["ai_count"] == 0
        assert [card["display_index"] for card in body["lyrics"]] == [1, 2, 3, 4, 5]


def test_mix_with_ingested_ai_lyrics() -> None:
    with _client() as client:
        for genre in FIVE_GENRES:
            response = client.post(
                "/ai-lyrics",
                json={"session_id": "s1", "genre": genre, "id": f"ai-{genre}", "text": f"AI {genre}"},
            )
            assert response.status_code == 201
            assert response.json()["genre"] == genre

        response = client.post("/mix-lyrics", json=_mix_payload("s1", ai_sentiment=4))
        assert response.status_code == 200
        body = response.json()
        metadata = body["metadata"]

        assert len(body["lyrics"]) == 10
        assert metadata["total_count"] == 10
        assert metadata["human_count"] == 5
        assert metadata["ai_count"] == 5
        assert metadata["fallback_mode"] is False
        assert metadata["ai_source"] == "ai"
        assert sum(card["is_ai"] for card in body["lyrics"]) == 5
        assert {card["id"] for card in body["lyrics"] if card["is_ai"]} == {f"ai-{g}" for g in FIVE_GENRES}

        selection = client.get("/sessions/s1/selection")
        assert selection.status_code == 200
        assert selection.json()["selected_human_ids"] == metadata["selected_human_ids"]


def test_duplicate_ai_lyric_is_rejected() -> None:
    with _client() as client:
        payload = {"session_id": "s1", "genre": "tipik", "text": "Ravann"}
        assert client.post("/ai-lyrics", json=payload).status_code == 201
        assert client.post("/ai-lyrics", json={**payload, "genre": "Tipik"}).status_code == 409


def test_mix_rejects_invalid_preferences() -> None:
    with _client() as client:
        assert client.post("/mix-lyrics", json=_mix_payload("s1", sega_familiarity=7)).status_code == 422
        assert client.post("/mix-lyrics", json=_mix_payload("s1", ai_sentiment="unsure")).status_code == 422
        assert client.post("/mix-lyrics", json={"age": 30}).status_code == 422


def test_mix_accepts_birthday_instead_of_age() -> None:
    with _client() as client:
        payload = _mix_payload("s-bday", age=None, birthday="1950-03-02", ai_sentiment=1)
        response = client.post("/mix-lyrics", json=payload)
        assert response.status_code == 200
        assert len(response.json()["lyrics"]) == 5


def test_lyric_lookup_and_missing_selection() -> None:
    with _client() as client:
        response = client.get("/lyrics/1")
        assert response.status_code == 200
        assert response.json()["lyric"]["id"] == "1"

        assert client.get("/lyrics/does-not-exist").status_code == 404
        assert client.get("/sessions/nobody/selection").status_code == 404


def test_mix_unavailable_without_corpus(tmp_path) -> None:
    with _client(DEMO_MODE=False, CORPUS_PATH=str(tmp_path / "missing.json")) as client:
        assert client.get("/health").json()["status"] == "degraded"
        assert client.post("/mix-lyrics", json=_mix_payload("s1")).status_code == 503
        assert client.get("/lyrics/1").status_code == 503
