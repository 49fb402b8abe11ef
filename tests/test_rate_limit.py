"""Tests for the fixed-window rate limiter."""

from starlette.requests import Request

from app.core.rate_limit import RateLimiter, get_client_ip


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _request(headers: dict[str, str] | None = None, client=("9.9.9.9", 1234)) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "headers": raw, "client": client})


class TestRateLimiter:
    def test_allows_up_to_limit_then_blocks(self):
        limiter = RateLimiter(limit=10, window_seconds=60, clock=FakeClock())
        results = [limiter.check("1.2.3.4")[0] for _ in range(11)]
        assert results == [True] * 10 + [False]

    def test_blocked_request_reports_retry_after(self):
        clock = FakeClock()
        limiter = RateLimiter(limit=1, window_seconds=60, clock=clock)
        limiter.check("a")
        clock.now = 20
        allowed, retry_after = limiter.check("a")
        assert allowed is False
        assert retry_after == 40

    def test_window_resets(self):
        clock = FakeClock()
        limiter = RateLimiter(limit=1, window_seconds=60, clock=clock)
        assert limiter.check("a")[0] is True
        assert limiter.check("a")[0] is False
        clock.now = 61
        assert limiter.check("a")[0] is True

    def test_keys_are_independent(self):
        limiter = RateLimiter(limit=1, window_seconds=60, clock=FakeClock())
        assert limiter.check("a")[0] is True
        assert limiter.check("b")[0] is True
        assert limiter.check("a")[0] is False


class TestClientIp:
    def test_first_forwarded_address_wins(self):
        assert get_client_ip(_request({"X-Forwarded-For": "1.2.3.4, 5.6.7.8"})) == "1.2.3.4"

    def test_real_ip_header(self):
        assert get_client_ip(_request({"X-Real-IP": "4.3.2.1"})) == "4.3.2.1"

    def test_falls_back_to_peer_address(self):
        assert get_client_ip(_request()) == "9.9.9.9"

    def test_unknown_without_peer(self):
        assert get_client_ip(_request(client=None)) == "unknown"
