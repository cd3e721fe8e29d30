"""Private diary endpoints, including background vector indexing."""

import pytest

pytestmark = pytest.mark.integration

RIVER = "Walking by the river calmed my racing thoughts"


def _create(client, user, content=RIVER, mood="peaceful", **extra):
    response = client.post(
        "/api/diary", json={"content": content, "mood": mood, **extra}, headers=user["headers"]
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_create_indexes_the_entry(client, alice, vector_service):
    entry = _create(client, alice, gratitude="Quiet water")

    assert entry["is_private"] is True
    stored = vector_service.store.get_entry(entry["id"])
    assert stored.content == f"{RIVER} Quiet water"

    fetched = client.get(f"/api/diary/{entry['id']}", headers=alice["headers"]).json()
    assert fetched["vector_id"] == stored.id


def test_create_awards_diary_experience_with_bonus(client, alice):
    _create(client, alice, highlights="Saw a heron")

    profile = client.get("/api/engagement/profile", headers=alice["headers"]).json()

    assert profile["experience"] == 3 + 20
    assert profile["streaks"]["diary"]["current_streak"] == 1


def test_invalid_mood_is_a_validation_error(client, alice):
    response = client.post(
        "/api/diary", json={"content": "text", "mood": "furious"}, headers=alice["headers"]
    )

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_entries_are_private(client, alice, bob):
    entry = _create(client, alice)

    assert client.get(f"/api/diary/{entry['id']}", headers=bob["headers"]).status_code == 404
    assert client.delete(f"/api/diary/{entry['id']}", headers=bob["headers"]).status_code == 404
    assert client.get("/api/diary", headers=bob["headers"]).json()["entries"] == []
    assert client.get("/api/diary").status_code == 401


def test_list_paginates(client, alice):
    for i in range(3):
        _create(client, alice, content=f"Entry number {i}")

    page = client.get("/api/diary", params={"limit": 2}, headers=alice["headers"]).json()

    assert [e["content"] for e in page["entries"]] == ["Entry number 2", "Entry number 1"]
    assert page["pagination"] == {"page": 1, "limit": 2, "total": 3, "has_more": True}


def test_semantic_search(client, alice, bob):
    river = _create(client, alice)
    _create(client, alice, content="Quarterly budget spreadsheet deadline", mood="anxious")
    _create(client, bob, content=RIVER)

    response = client.get(
        "/api/diary/search", params={"q": RIVER}, headers=alice["headers"]
    ).json()

    assert response["query"] == RIVER
    assert [e["id"] for e in response["entries"]] == [river["id"]]
    assert response["entries"][0]["similarity"] == pytest.approx(1.0, abs=1e-5)
    assert response["total_results"] == 1


def test_search_requires_a_query(client, alice):
    response = client.get("/api/diary/search", params={"q": "  "}, headers=alice["headers"])

    assert response.status_code == 400
    assert response.json()["error"] == "MISSING_QUERY"


def test_related_entries(client, alice):
    first = _create(client, alice)
    second = _create(client, alice, mood="calm")
    _create(client, alice, content="Quarterly budget spreadsheet deadline", mood="anxious")

    related = client.get(f"/api/diary/{first['id']}/related", headers=alice["headers"]).json()

    assert related["entry_id"] == first["id"]
    assert [e["id"] for e in related["related_entries"]] == [second["id"]]


def test_update_reindexes(client, alice, vector_service):
    entry = _create(client, alice)

    response = client.put(
        f"/api/diary/{entry['id']}",
        json={"content": "Rain on the window all afternoon", "mood": "reflective"},
        headers=alice["headers"],
    )

    assert response.status_code == 200
    body = response.json()
    assert body["mood"] == "reflective"
    assert body["vector_id"] is None
    stored = vector_service.store.get_entry(entry["id"])
    assert stored.content == "Rain on the window all afternoon"
    assert stored.metadata.mood == "reflective"


def test_update_without_changes_keeps_vector(client, alice, vector_service):
    entry = _create(client, alice)
    before = vector_service.store.get_entry(entry["id"])

    body = client.put(f"/api/diary/{entry['id']}", json={}, headers=alice["headers"]).json()

    assert body["vector_id"] == before.id


def test_delete_removes_vector(client, alice, vector_service):
    entry = _create(client, alice)

    response = client.delete(f"/api/diary/{entry['id']}", headers=alice["headers"])

    assert response.json() == {"message": "Diary entry deleted successfully"}
    assert vector_service.store.get_entry(entry["id"]) is None


def test_mood_types_and_stats(client, alice):
    _create(client, alice, mood="grateful")

    types = client.get("/api/diary/mood-types", headers=alice["headers"]).json()
    stats = client.get("/api/diary/moods", headers=alice["headers"]).json()

    assert len(types) == 8
    assert types[0] == {"value": "happy", "label": "Happy", "color": "#fbbf24", "icon": "😊"}
    assert stats["moods"]["grateful"] == 1
    assert stats["total_entries"] == 1


def test_insights(client, alice):
    empty = client.get("/api/diary/insights", headers=alice["headers"]).json()
    assert empty["overall_mood"] == "neutral"

    _create(client, alice)
    insights = client.get("/api/diary/insights", headers=alice["headers"]).json()

    assert insights["total_entries"] == 1
    assert insights["overall_mood"] == "concise"
    assert insights["mood_distribution"] == {"peaceful": 1}
