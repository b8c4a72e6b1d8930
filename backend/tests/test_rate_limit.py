from types import SimpleNamespace

from portfolio.utils.rate_limit import SlidingWindowRateLimiter, get_client_ip


def test_limiter_blocks_after_limit_and_reports_retry_after(monkeypatch):
    clock = {"now": 1000.0}
    monkeypatch.setattr("portfolio.utils.rate_limit.time.monotonic", lambda: clock["now"])
    limiter = SlidingWindowRateLimiter()

    assert limiter.hit("contact:1.2.3.4", 2, 60).allowed
    clock["now"] += 10
    assert limiter.hit("contact:1.2.3.4", 2, 60).allowed
    blocked = limiter.hit("contact:1.2.3.4", 2, 60)
    assert not blocked.allowed
    assert blocked.retry_after == 50

    clock["now"] += 51
    assert limiter.hit("contact:1.2.3.4", 2, 60).allowed


def test_limiter_sweeps_stale_keys(monkeypatch):
    clock = {"now": 1000.0}
    monkeypatch.setattr("portfolio.utils.rate_limit.time.monotonic", lambda: clock["now"])
    limiter = SlidingWindowRateLimiter(sweep_interval_seconds=1)

    for i in range(200):
        assert limiter.hit(f"k:{i}", 1, 60).allowed

    clock["now"] += 120
    assert limiter.hit("k:new", 1, 60).allowed
    assert limiter.tracked_keys() == 1


def _request(peer_ip, headers=None):
    return SimpleNamespace(headers=headers or {}, client=SimpleNamespace(host=peer_ip))


def test_forwarded_header_ignored_from_untrusted_peer():
    req = _request("198.51.100.15", {"x-forwarded-for": "203.0.113.9"})

    assert get_client_ip(req, ["10.0.0.0/8"]) == "198.51.100.15"


def test_forwarded_header_used_from_trusted_proxy():
    req = _request("10.1.2.3", {"x-forwarded-for": "1.1.1.1, 203.0.113.9"})

    assert get_client_ip(req, ["10.0.0.0/8"]) == "203.0.113.9"
