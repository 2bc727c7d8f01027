from __future__ import annotations

from storefront.core.rate_limiter import SlidingWindowLimiter


def test_window_slides_with_the_clock():
    now = [100.0]
    limiter = SlidingWindowLimiter(clock=lambda: now[0])

    assert limiter.hit("signin:1.2.3.4", limit=2, window_seconds=60)
    assert limiter.hit("signin:1.2.3.4", limit=2, window_seconds=60)
    assert not limiter.hit("signin:1.2.3.4", limit=2, window_seconds=60)
    assert limiter.hit("signin:5.6.7.8", limit=2, window_seconds=60)

    now[0] += 61
    assert limiter.hit("signin:1.2.3.4", limit=2, window_seconds=60)


def test_each_key_keeps_its_own_window_and_idle_keys_are_dropped():
    now = [0.0]
    limiter = SlidingWindowLimiter(clock=lambda: now[0])

    assert limiter.hit("signup:1.2.3.4", limit=1, window_seconds=300)
    now[0] = 100.0
    assert limiter.hit("signin:9.9.9.9", limit=1, window_seconds=60)
    assert not limiter.hit("signup:1.2.3.4", limit=1, window_seconds=300)
    assert limiter.tracked_keys() == 2

    now[0] = 400.0
    assert limiter.hit("signin:5.5.5.5", limit=1, window_seconds=60)
    assert limiter.tracked_keys() == 1
