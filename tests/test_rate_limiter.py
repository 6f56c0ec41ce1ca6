"""Tests for the sliding-window rate limiter."""

from security.rate_limiter import SlidingWindowLimiter


class TestSlidingWindowLimiter:

    def test_allows_up_to_the_limit(self):
        limiter = SlidingWindowLimiter(limit=3, window=60)
        assert [limiter.hit(1, now=t) for t in (0, 1, 2, 3)] == [True, True, True, False]

    def test_window_slides(self):
        limiter = SlidingWindowLimiter(limit=2, window=10)
        assert limiter.hit(1, now=0)
        assert limiter.hit(1, now=5)
        assert not limiter.hit(1, now=9)
        assert limiter.hit(1, now=10.5)
        assert not limiter.hit(1, now=11)
        assert limiter.hit(1, now=15.5)

    def test_refused_hits_are_not_counted(self):
        limiter = SlidingWindowLimiter(limit=1, window=10)
        assert limiter.hit(1, now=0)
        for t in range(1, 10):
            assert not limiter.hit(1, now=t)
        assert limiter.hit(1, now=10)

    def test_keys_are_independent(self):
        limiter = SlidingWindowLimiter(limit=1, window=60)
        assert limiter.hit(1, now=0)
        assert limiter.hit(2, now=0)
        assert not limiter.hit(1, now=1)
