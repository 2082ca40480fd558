"""Unit tests for ResultCache."""

from datetime import datetime, timedelta, timezone

from campaign_attribution.cache import ResultCache

T0 = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
TTL = timedelta(minutes=10)


class TestResultCache:
    """Tests for explicit TTL caching."""

    def test_get_fresh_and_expired(self) -> None:
        cache = ResultCache()
        cache.put("report", {"a": 1}, now=T0)
        assert cache.get("report", TTL, now=T0 + timedelta(minutes=9)) == {"a": 1}
        assert cache.get("report", TTL, now=T0 + timedelta(minutes=10)) is None

    def test_missing_key(self) -> None:
        assert ResultCache().get("nope", TTL) is None

    def test_get_or_compute_reuses_fresh_value(self) -> None:
        cache = ResultCache()
        calls: list[int] = []

        def compute() -> int:
            calls.append(1)
            return len(calls)

        assert cache.get_or_compute("k", compute, TTL, now=T0) == 1
        assert cache.get_or_compute("k", compute, TTL, now=T0 + timedelta(minutes=5)) == 1
        assert cache.get_or_compute("k", compute, TTL, now=T0 + timedelta(minutes=11)) == 2
        assert cache.entry("k").computed_at == T0 + timedelta(minutes=11)

    def test_invalidate(self) -> None:
        cache = ResultCache()
        cache.put("a", 1, now=T0)
        cache.put("b", 2, now=T0)
        cache.invalidate("a")
        assert len(cache) == 1
        cache.invalidate()
        assert len(cache) == 0

    def test_injected_clock(self) -> None:
        now = [T0]
        cache = ResultCache(clock=lambda: now[0])
        cache.put("k", "v")
        now[0] = T0 + timedelta(hours=1)
        assert cache.get("k", TTL) is None
