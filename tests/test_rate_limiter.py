import time

import pytest

from haircrew import rate_limiter
from haircrew.rate_limiter import check_rate_limit, get_client_ip


class FakeRequest:
    def __init__(self, headers=None, host="10.0.0.1"):
        self.headers = headers or {}
        self.client = type("Client", (), {"host": host})() if host else None


def test_no_redis_url_disables_limiter():
    assert rate_limiter.get_redis_client() is None


def test_window_allows_limit_then_blocks(fake_redis):
    results = [check_rate_limit("ratelimit:test:ip", 3, 30, fake_redis) for _ in range(4)]

    assert [allowed for allowed, _, _ in results] == [True, True, True, False]
    assert [remaining for _, remaining, _ in results] == [2, 1, 0, 0]
    assert fake_redis.zcard("ratelimit:test:ip") == 3
    assert fake_redis.ttls["ratelimit:test:ip"] == 30_000


def test_reset_is_oldest_request_plus_window(fake_redis):
    now_ms = int(time.time() * 1000)
    fake_redis.zadd("ratelimit:test:ip", {"early": now_ms - 10_000})

    allowed, remaining, reset = check_rate_limit("ratelimit:test:ip", 5, 30, fake_redis)

    assert allowed
    assert remaining == 3
    assert reset == -(-(now_ms - 10_000 + 30_000) // 1000)


def test_expired_entries_fall_out_of_window(fake_redis):
    now_ms = int(time.time() * 1000)
    fake_redis.zadd("ratelimit:test:ip", {f"old-{i}": now_ms - 60_000 for i in range(5)})

    allowed, remaining, _ = check_rate_limit("ratelimit:test:ip", 5, 30, fake_redis)

    assert allowed
    assert remaining == 4


@pytest.mark.parametrize(
    "headers, host, expected",
    [
        ({"X-Forwarded-For": "203.0.113.9, 10.0.0.2"}, "10.0.0.1", "203.0.113.9"),
        ({"X-Real-IP": " 198.51.100.7 "}, "10.0.0.1", "198.51.100.7"),
        ({}, "10.0.0.1", "10.0.0.1"),
        ({}, None, "unknown"),
    ],
)
def test_client_ip_resolution(headers, host, expected):
    assert get_client_ip(FakeRequest(headers, host)) == expected
