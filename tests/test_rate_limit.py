"""RateLimiter のユニットテスト。"""
import threading

import pytest

from conftest import FakeMonotonic
from scanledger.errors import RateLimitExceededError
from scanledger.gate import RateLimit, RateLimiter


def test_second_call_within_window_is_rejected():
    clock = FakeMonotonic()
    limiter = RateLimiter({"start-scan": RateLimit(1, 60)}, clock=clock)
    limiter.check("start-scan")
    clock.advance(10)
    with pytest.raises(RateLimitExceededError) as exc_info:
        limiter.check("start-scan")
    assert 0 < exc_info.value.retry_after <= 60
    assert exc_info.value.retry_after == 50
    assert exc_info.value.operation == "start-scan"


def test_call_allowed_after_window_elapses():
    clock = FakeMonotonic()
    limiter = RateLimiter({"start-scan": RateLimit(1, 60)}, clock=clock)
    limiter.check("start-scan")
    clock.advance(60)
    limiter.check("start-scan")


def test_retry_after_rounds_up_and_stays_positive():
    clock = FakeMonotonic()
    limiter = RateLimiter({"op": RateLimit(1, 60)}, clock=clock)
    limiter.check("op")
    clock.advance(59.9)
    with pytest.raises(RateLimitExceededError) as exc_info:
        limiter.check("op")
    assert exc_info.value.retry_after == 1


def test_rejected_calls_do_not_extend_the_window():
    clock = FakeMonotonic()
    limiter = RateLimiter({"op": RateLimit(2, 60)}, clock=clock)
    limiter.check("op")
    limiter.check("op")
    for _ in range(5):
        clock.advance(5)
        with pytest.raises(RateLimitExceededError):
            limiter.check("op")
    clock.advance(35)
    limiter.check("op")


def test_operations_are_independent():
    clock = FakeMonotonic()
    limiter = RateLimiter(
        {"start-scan": RateLimit(1, 60), "save-config": RateLimit(20, 60)}, clock=clock
    )
    limiter.check("start-scan")
    for _ in range(20):
        limiter.check("save-config")
    with pytest.raises(RateLimitExceededError):
        limiter.check("save-config")
    with pytest.raises(RateLimitExceededError):
        limiter.check("start-scan")


def test_unlimited_operation_always_allowed():
    limiter = RateLimiter({}, clock=FakeMonotonic())
    for _ in range(100):
        limiter.check("get-database-stats")
    assert limiter.status("get-database-stats") is None


def test_default_limits():
    limiter = RateLimiter(clock=FakeMonotonic())
    assert limiter.limits["start-scan"].max_calls == 1
    assert limiter.limits["save-config"].max_calls == 20


def test_status_does_not_consume():
    clock = FakeMonotonic()
    limiter = RateLimiter({"op": RateLimit(3, 60)}, clock=clock)
    limiter.check("op")
    assert limiter.status("op").remaining == 2
    assert limiter.status("op").remaining == 2
    clock.advance(61)
    assert limiter.status("op").remaining == 3


def test_reset():
    clock = FakeMonotonic()
    limiter = RateLimiter({"a": RateLimit(1, 60), "b": RateLimit(1, 60)}, clock=clock)
    limiter.check("a")
    limiter.check("b")
    limiter.reset("a")
    limiter.check("a")
    with pytest.raises(RateLimitExceededError):
        limiter.check("b")
    limiter.reset()
    limiter.check("b")


def test_concurrent_callers_share_the_ceiling():
    limiter = RateLimiter({"op": RateLimit(10, 60)})
    allowed = []
    lock = threading.Lock()

    def worker():
        for _ in range(10):
            try:
                limiter.check("op")
            except RateLimitExceededError:
                continue
            with lock:
                allowed.append(1)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(allowed) == 10
