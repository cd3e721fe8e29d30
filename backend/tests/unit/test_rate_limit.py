import pytest

from backend.src.services.errors import RateLimitError
from backend.src.services.rate_limit import RateLimiter, get_auth_limiter, get_post_limiter


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_allows_up_to_max_attempts_then_blocks():
    limiter = RateLimiter(3, 60, clock=FakeClock())

    results = [limiter.check("client") for _ in range(4)]

    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]


def test_window_expiry_resets_the_count():
    clock = FakeClock()
    limiter = RateLimiter(1, 60, clock=clock)

    assert limiter.check("client").allowed
    assert not limiter.check("client").allowed

    clock.now += 61
    assert limiter.check("client").allowed


def test_keys_are_independent():
    limiter = RateLimiter(1, 60, clock=FakeClock())

    assert limiter.check("a").allowed
    assert limiter.check("b").allowed
    assert not limiter.check("a").allowed


def test_clear_forgets_a_key():
    limiter = RateLimiter(1, 60, clock=FakeClock())
    limiter.check("client")

    limiter.clear("client")

    assert limiter.check("client").allowed


def test_enforce_raises_with_reset_time():
    clock = FakeClock()
    limiter = RateLimiter(1, 60, clock=clock)
    limiter.enforce("client")

    with pytest.raises(RateLimitError) as excinfo:
        limiter.enforce("client")

    assert excinfo.value.error == "RATE_LIMIT_EXCEEDED"
    assert excinfo.value.status_code == 429
    assert "reset_at" in excinfo.value.detail


def test_shared_limiters_follow_config(monkeypatch):
    from backend.src.services import config as config_module
    from backend.src.services.rate_limit import reset_limiters

    monkeypatch.setenv("AUTH_RATE_LIMIT_ATTEMPTS", "2")
    monkeypatch.setenv("POST_RATE_LIMIT", "3")
    config_module.reload_config()
    reset_limiters()

    assert get_auth_limiter().max_attempts == 2
    assert get_auth_limiter().window_seconds == 15 * 60
    assert get_post_limiter().max_attempts == 3
    assert get_post_limiter() is get_post_limiter()
