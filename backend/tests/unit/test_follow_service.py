import pytest

from backend.src.services.errors import ConflictError, NotFoundError, ValidationError
from backend.src.services.follows import FollowService


@pytest.fixture
def follows(db) -> FollowService:
    return FollowService(db)


@pytest.fixture
def people(make_user):
    return {name: make_user(name) for name in ("ana", "ben", "cai", "dee")}


def test_follow_and_unfollow(follows, people):
    ana, ben = people["ana"], people["ben"]

    result = follows.follow(ana.id, ben.id)
    assert (result.following, result.follower_count) == (True, 1)

    with pytest.raises(ConflictError) as excinfo:
        follows.follow(ana.id, ben.id)
    assert excinfo.value.error == "ALREADY_FOLLOWING"

    undone = follows.unfollow(ana.id, ben.id)
    assert (undone.following, undone.follower_count) == (False, 0)

    with pytest.raises(ConflictError) as excinfo:
        follows.unfollow(ana.id, ben.id)
    assert excinfo.value.error == "NOT_FOLLOWING"


def test_follow_rules(follows, people):
    with pytest.raises(ValidationError):
        follows.follow(people["ana"].id, people["ana"].id)
    with pytest.raises(NotFoundError):
        follows.follow(people["ana"].id, "missing")


def test_followers_and_following_lists(follows, people):
    ana, ben, cai = people["ana"], people["ben"], people["cai"]
    follows.follow(ben.id, ana.id)
    follows.follow(cai.id, ana.id)

    followers = follows.followers(ana.id, limit=1)
    assert [u.username for u in followers.users] == ["cai"]
    assert followers.has_more is True
    assert [u.username for u in follows.followers(ana.id, offset=1).users] == ["ben"]
    assert [u.username for u in follows.following(ben.id).users] == ["ana"]


def test_stats_include_viewer_relationship(follows, people):
    ana, ben = people["ana"], people["ben"]
    follows.follow(ana.id, ben.id)

    stats = follows.stats(ben.id, viewer_id=ana.id)
    assert (stats.follower_count, stats.following_count) == (1, 0)
    assert stats.is_following is True
    assert stats.is_followed_by is False

    assert follows.stats(ben.id).is_following is None


def test_suggestions_rank_friends_of_friends(follows, people):
    ana, ben, cai, dee = people["ana"], people["ben"], people["cai"], people["dee"]
    follows.follow(ana.id, ben.id)
    follows.follow(ana.id, cai.id)
    follows.follow(ben.id, dee.id)
    follows.follow(cai.id, dee.id)
    follows.follow(ben.id, ana.id)

    suggestions = follows.suggestions(ana.id)

    assert [(s.username, s.mutual_connections) for s in suggestions] == [("dee", 2)]


def test_mutual_follows(follows, people):
    ana, ben, cai = people["ana"], people["ben"], people["cai"]
    follows.follow(ana.id, ben.id)
    follows.follow(ben.id, ana.id)
    follows.follow(ana.id, cai.id)

    assert [u.username for u in follows.mutual(ana.id)] == ["ben"]


def test_activity_shows_follows_by_followed_users(follows, people):
    ana, ben, cai, dee = people["ana"], people["ben"], people["cai"], people["dee"]
    follows.follow(ana.id, ben.id)
    follows.follow(ben.id, cai.id)
    follows.follow(dee.id, cai.id)

    activity = follows.activity(ana.id)

    assert [(a.follower.username, a.following.username) for a in activity] == [("ben", "cai")]
