import threading
import time
from types import SimpleNamespace

import pytest

from errors import RateLimitError
from services.rate_limit import RequestRateLimiter, client_key


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRequestRateLimiter:
    def test_allows_up_to_limit(self):
        limiter = RequestRateLimiter(limit=3, window_sec=60, clock=FakeClock())
        for _ in range(3):
            limiter.hit("1.2.3.4")

    def test_rejects_over_limit_with_retry_after(self):
        clock = FakeClock()
        limiter = RequestRateLimiter(limit=2, window_sec=60, clock=clock)
        limiter.hit("1.2.3.4")
        clock.now += 15
        limiter.hit("1.2.3.4")

        with pytest.raises(RateLimitError) as exc_info:
            limiter.hit("1.2.3.4")
        assert exc_info.value.retry_after_sec == 45
        assert exc_info.value.status_code == 429

    def test_keys_are_independent(self):
        limiter = RequestRateLimiter(limit=1, window_sec=60, clock=FakeClock())
        limiter.hit("1.2.3.4")
        limiter.hit("5.6.7.8")
        with pytest.raises(RateLimitError):
            limiter.hit("1.2.3.4")

    def test_new_window_resets_count(self):
        clock = FakeClock()
        limiter = RequestRateLimiter(limit=1, window_sec=60, clock=clock)
        limiter.hit("1.2.3.4")
        clock.now += 60
        limiter.hit("1.2.3.4")

    def test_rejected_hits_do_not_extend_the_window(self):
        clock = FakeClock()
        limiter = RequestRateLimiter(limit=1, window_sec=60, clock=clock)
        limiter.hit("1.2.3.4")
        for _ in range(5):
            clock.now += 10
            with pytest.raises(RateLimitError):
                limiter.hit("1.2.3.4")
        clock.now += 10
        limiter.hit("1.2.3.4")

    def test_concurrent_hits_never_exceed_limit(self):
        # The cache timer sleeps, so threads switch inside every cache access
        def slow_clock() -> float:
            time.sleep(0.001)
            return 1000.0

        limiter = RequestRateLimiter(limit=20, window_sec=600, clock=slow_clock)
        barrier = threading.Barrier(40)
        accepted = []

        def attempt():
            barrier.wait()
            try:
                limiter.hit("1.2.3.4")
                accepted.append(True)
            except RateLimitError:
                pass

        threads = [threading.Thread(target=attempt) for _ in range(40)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(accepted) == 20


def make_request(host: str = "10.0.0.1", forwarded: str | None = None):
    headers = {"X-Forwarded-For": forwarded} if forwarded else {}
    return SimpleNamespace(headers=headers, client=SimpleNamespace(host=host))


class TestClientKey:
    def test_uses_peer_address_by_default(self):
        request = make_request(forwarded="203.0.113.9")
        assert client_key(request, trust_proxy=False) == "10.0.0.1"  # type: ignore[arg-type]

    def test_uses_first_forwarded_hop_behind_proxy(self):
        request = make_request(forwarded="203.0.113.9, 10.0.0.2")
        assert client_key(request, trust_proxy=True) == "203.0.113.9"  # type: ignore[arg-type]

    def test_falls_back_when_header_missing(self):
        assert client_key(make_request(), trust_proxy=True) == "10.0.0.1"  # type: ignore[arg-type]
