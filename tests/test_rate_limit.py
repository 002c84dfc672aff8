from storefront.core.rate_limit import RateLimiter

from conftest import FakeClock


WINDOW = 15 * 60 * 1000


def test_allows_up_to_limit_then_refuses():
    limiter = RateLimiter(clock=FakeClock())

    results = [limiter.hit("203.0.113.1", 3, WINDOW) for _ in range(5)]

    assert results == [True, True, True, False, False]


def test_identifiers_are_independent():
    limiter = RateLimiter(clock=FakeClock())

    assert limiter.hit("a", 1, WINDOW)
    assert not limiter.hit("a", 1, WINDOW)
    assert limiter.hit("b", 1, WINDOW)


def test_window_resets_after_expiry():
    clock = FakeClock()
    limiter = RateLimiter(clock=clock)
    limiter.hit("a", 1, WINDOW)

    clock.advance(WINDOW - 1)
    assert not limiter.hit("a", 1, WINDOW)

    clock.advance(1)
    assert limiter.hit("a", 1, WINDOW)


def test_expired_buckets_are_pruned():
    clock = FakeClock()
    limiter = RateLimiter(clock=clock)
    limiter.hit("a", 5, WINDOW)
    limiter.hit("b", 5, WINDOW)
    assert len(limiter) == 2

    clock.advance(WINDOW)
    limiter.hit("c", 5, WINDOW)

    assert len(limiter) == 1


def test_defaults_and_reset():
    limiter = RateLimiter(clock=FakeClock())

    assert all(limiter.hit("a") for _ in range(100))
    assert not limiter.hit("a")

    limiter.reset()
    assert limiter.hit("a")
