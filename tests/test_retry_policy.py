"""
Tests for rate-limit retries and the service cooldown.
"""

from types import SimpleNamespace

import pytest

from RS_Libs.InpaintingLib.retry_policy import Cooldown, call_with_retry, is_rate_limit_error


class RateLimited(Exception):
    code = 429


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def failing_then(results):
    """Callable that raises or returns the queued results in order."""
    queue = list(results)
    calls = []

    def fn():
        calls.append(1)
        item = queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    fn.calls = calls
    return fn


class TestIsRateLimitError:
    """Tests for is_rate_limit_error function."""

    def test_code_attribute(self):
        assert is_rate_limit_error(RateLimited("quota"))

    def test_status_attribute(self):
        error = Exception("boom")
        error.status = "RESOURCE_EXHAUSTED"

        assert is_rate_limit_error(error)

    @pytest.mark.parametrize("message", [
        "429 Too Many Requests",
        "Too many requests, slow down",
        "RESOURCE_EXHAUSTED: quota",
    ])
    def test_message_markers(self, message):
        assert is_rate_limit_error(RuntimeError(message))

    def test_other_errors(self):
        assert not is_rate_limit_error(ValueError("bad request"))
        assert not is_rate_limit_error(SimpleNamespace(code=500))


class TestCallWithRetry:
    """Tests for call_with_retry function."""

    def test_success_first_try(self):
        sleeps = []
        fn = failing_then(["ok"])

        assert call_with_retry(fn, sleep=sleeps.append) == "ok"
        assert sleeps == []

    def test_retries_rate_limit_then_succeeds(self):
        sleeps = []
        fn = failing_then([RateLimited("slow"), "ok"])

        assert call_with_retry(fn, max_retries=2, sleep=sleeps.append) == "ok"
        assert sleeps == [5.0]
        assert len(fn.calls) == 2

    def test_raises_after_last_attempt(self):
        sleeps = []
        fn = failing_then([RateLimited("1"), RateLimited("2"), RateLimited("3")])

        with pytest.raises(RateLimited, match="3"):
            call_with_retry(fn, max_retries=3, sleep=sleeps.append)
        assert sleeps == [5.0, 15.0]

    def test_default_attempt_count(self):
        sleeps = []
        fn = failing_then([RateLimited("1"), RateLimited("2"), "never"])

        with pytest.raises(RateLimited):
            call_with_retry(fn, sleep=sleeps.append)
        assert len(fn.calls) == 2
        assert sleeps == [5.0]

    def test_last_wait_repeats(self):
        sleeps = []
        fn = failing_then([RateLimited("1"), RateLimited("2"), RateLimited("3"), "ok"])

        call_with_retry(fn, max_retries=4, waits=(1.0, 2.0), sleep=sleeps.append)

        assert sleeps == [1.0, 2.0, 2.0]

    def test_other_errors_not_retried(self):
        sleeps = []
        fn = failing_then([ValueError("bad"), "ok"])

        with pytest.raises(ValueError):
            call_with_retry(fn, sleep=sleeps.append)
        assert len(fn.calls) == 1
        assert sleeps == []

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            call_with_retry(lambda: None, max_retries=0)
        with pytest.raises(ValueError):
            call_with_retry(lambda: None, waits=())


class TestCooldown:
    """Tests for the Cooldown countdown."""

    def test_inactive_by_default(self):
        cooldown = Cooldown(60, clock=FakeClock())

        assert not cooldown.active
        assert cooldown.remaining == 0

    def test_counts_down(self):
        clock = FakeClock()
        cooldown = Cooldown(60, clock=clock)

        cooldown.start()
        assert cooldown.remaining == 60

        clock.now += 0.5
        assert cooldown.remaining == 60

        clock.now += 30
        assert cooldown.remaining == 30
        assert cooldown.active

    def test_expires(self):
        clock = FakeClock()
        cooldown = Cooldown(60, clock=clock)
        cooldown.start()

        clock.now += 60

        assert not cooldown.active
        assert cooldown.remaining == 0

    def test_cancel(self):
        cooldown = Cooldown(60, clock=FakeClock())
        cooldown.start()

        cooldown.cancel()

        assert not cooldown.active

    def test_negative_duration_rejected(self):
        with pytest.raises(ValueError):
            Cooldown(-1)
