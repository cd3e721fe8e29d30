"""Profiles, follows and posts through the FastAPI app."""

import pytest

pytestmark = pytest.mark.integration


def test_public_profile_with_viewer_flags(client, alice, bob):
    client.post(f"/api/users/{alice['user']['id']}/follow", headers=bob["headers"])

    anonymous = client.get("/api/users/alice").json()
    as_bob = client.get("/api/users/alice", headers=bob["headers"]).json()

    assert anonymous["bio"] == "Writing one honest sentence a day."
    assert anonymous["email"] is None
    assert anonymous["is_following"] is None
    assert as_bob["follower_count"] == 1
    assert as_bob["is_following"] is True


def test_invalid_token_on_public_route_is_ignored(client, alice):
    response = client.get("/api/users/alice", headers={"Authorization": "Bearer garbage"})

    assert response.status_code == 200


def test_unknown_profile(client):
    response = client.get("/api/users/ghost")

    assert response.status_code == 404
    assert response.json()["error"] == "USER_NOT_FOUND"


def test_update_profile(client, alice):
    response = client.put("/api/users/profile", json={"bio": "New chapter"}, headers=alice["headers"])

    assert response.status_code == 200
    assert response.json()["bio"] == "New chapter"


def test_follow_lifecycle(client, alice, bob):
    alice_id = alice["user"]["id"]

    created = client.post(f"/api/users/{alice_id}/follow", headers=bob["headers"])
    assert created.status_code == 201
    assert created.json() == {"following": True, "follower_count": 1}

    again = client.post(f"/api/users/{alice_id}/follow", headers=bob["headers"])
    assert again.status_code == 409

    followers = client.get(f"/api/users/{alice_id}/followers").json()
    assert [u["username"] for u in followers["users"]] == ["bob"]

    stats = client.get(f"/api/users/{alice_id}/follow-stats", headers=bob["headers"]).json()
    assert stats["is_following"] is True

    removed = client.delete(f"/api/users/{alice_id}/follow", headers=bob["headers"])
    assert removed.json() == {"following": False, "follower_count": 0}


def test_self_follow_is_rejected(client, alice):
    response = client.post(f"/api/users/{alice['user']['id']}/follow", headers=alice["headers"])

    assert response.status_code == 400
    assert response.json()["error"] == "CANNOT_FOLLOW_SELF"


def test_suggestions_mutual_and_activity(client, register_user, alice, bob):
    cara = register_user("cara")
    ids = {name: user["user"]["id"] for name, user in (("alice", alice), ("bob", bob), ("cara", cara))}
    client.post(f"/api/users/{ids['bob']}/follow", headers=alice["headers"])
    client.post(f"/api/users/{ids['alice']}/follow", headers=bob["headers"])
    client.post(f"/api/users/{ids['cara']}/follow", headers=bob["headers"])

    suggestions = client.get("/api/users/suggestions", headers=alice["headers"]).json()
    mutual = client.get("/api/users/mutual", headers=alice["headers"]).json()
    activity = client.get("/api/users/activity", headers=alice["headers"]).json()

    assert [u["username"] for u in suggestions["users"]] == ["cara"]
    assert [u["username"] for u in mutual["users"]] == ["bob"]
    assert {a["following"]["username"] for a in activity["activities"]} == {"alice", "cara"}


def test_post_create_and_read(client, alice):
    created = client.post(
        "/api/posts", json={"content": "Noticing the small things #mindful"}, headers=alice["headers"]
    )

    assert created.status_code == 201
    post = created.json()
    assert post["hashtags"] == ["mindful"]

    fetched = client.get(f"/api/posts/{post['id']}").json()
    assert fetched["content"] == "Noticing the small things #mindful"
    assert fetched["is_liked_by_current_user"] is None

    by_user = client.get("/api/posts/user/alice").json()
    assert [p["id"] for p in by_user["posts"]] == [post["id"]]


def test_post_requires_auth_and_valid_content(client, alice):
    assert client.post("/api/posts", json={"content": "hello"}).status_code == 401

    spam = client.post("/api/posts", json={"content": "Click here now"}, headers=alice["headers"])
    assert spam.status_code == 400
    assert spam.json()["error"] == "INVALID_CONTENT"


def test_post_creation_is_rate_limited(client, alice):
    for i in range(10):
        response = client.post(
            "/api/posts", json={"content": f"Thought number {i}"}, headers=alice["headers"]
        )
        assert response.status_code == 201

    blocked = client.post("/api/posts", json={"content": "One more"}, headers=alice["headers"])

    assert blocked.status_code == 429


def test_feed_search_like_and_repost(client, alice, bob):
    client.post(f"/api/users/{alice['user']['id']}/follow", headers=bob["headers"])
    post = client.post(
        "/api/posts", json={"content": "Morning light on the lake"}, headers=alice["headers"]
    ).json()

    feed = client.get("/api/posts/feed", headers=bob["headers"]).json()
    assert [p["id"] for p in feed["posts"]] == [post["id"]]

    search = client.get("/api/posts/search", params={"q": "lake"}).json()
    assert search["query"] == "lake"
    assert len(search["posts"]) == 1

    liked = client.post(f"/api/posts/{post['id']}/like", headers=bob["headers"]).json()
    assert liked == {"liked": True, "like_count": 1}

    reposted = client.post(f"/api/posts/{post['id']}/repost", headers=bob["headers"]).json()
    assert reposted == {"reposted": True, "repost_count": 1}

    own = client.post(f"/api/posts/{post['id']}/repost", headers=alice["headers"])
    assert own.status_code == 400

    recent = client.get("/api/posts/recent", headers=bob["headers"]).json()
    assert recent["posts"][0]["original_post"]["id"] == post["id"]
    assert recent["posts"][1]["is_liked_by_current_user"] is True


def test_search_rejects_bad_queries(client):
    assert client.get("/api/posts/search").status_code == 400
    assert client.get("/api/posts/search", params={"q": "x; DROP TABLE posts"}).status_code == 400


def test_edit_and_delete_post(client, alice, bob):
    post = client.post("/api/posts", json={"content": "Draft"}, headers=alice["headers"]).json()

    forbidden = client.put(f"/api/posts/{post['id']}", json={"content": "Mine now"}, headers=bob["headers"])
    assert forbidden.status_code == 403

    edited = client.put(f"/api/posts/{post['id']}", json={"content": "Final"}, headers=alice["headers"])
    assert edited.json()["content"] == "Final"

    deleted = client.delete(f"/api/posts/{post['id']}", headers=alice["headers"])
    assert deleted.json() == {"message": "Post deleted successfully"}
    assert client.get(f"/api/posts/{post['id']}").status_code == 404
