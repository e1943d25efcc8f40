"""Unit tests for the fixed-window limiter."""

from guestpass_api.rate_limit import FixedWindowLimiter


class TestFixedWindowLimiter:
    """Tests for FixedWindowLimiter.hit."""

    def test_allows_up_to_limit(self) -> None:
        limiter = FixedWindowLimiter(window=60)
        results = [limiter.hit("k", 3, now=120.0) for _ in range(4)]
        assert results == [True, True, True, False]

    def test_new_window_resets_count(self) -> None:
        limiter = FixedWindowLimiter(window=60)
        for _ in range(3):
            limiter.hit("k", 3, now=120.0)

        assert limiter.hit("k", 3, now=180.0)

    def test_keys_are_independent(self) -> None:
        limiter = FixedWindowLimiter(window=60)
        limiter.hit("a", 1, now=0.0)
        assert limiter.hit("b", 1, now=0.0)
        assert not limiter.hit("a", 1, now=0.0)

    def test_stale_windows_are_evicted(self) -> None:
        limiter = FixedWindowLimiter(window=60)
        for client in range(50):
            limiter.hit(f"verify-token:10.0.0.{client}", 20, now=120.0)
        assert len(limiter) == 50

        limiter.hit("verify-token:10.0.1.1", 20, now=180.0)

        assert len(limiter) == 1
        assert limiter.hit("verify-token:10.0.0.1", 1, now=185.0)
