import pytest

from ytchannel_scraper.backoff import BackoffDelayer


class TestDelay:
    def test_delay_within_base_plus_jitter(self):
        sleeps = []
        delayer = BackoffDelayer(base_delay_ms=1000, jitter_ms=500, sleep=sleeps.append)
        for _ in range(20):
            delayer.delay()
        assert len(sleeps) == 20
        assert all(1.0 <= s <= 1.5 for s in sleeps)

    def test_zero_base_delay(self):
        sleeps = []
        BackoffDelayer(base_delay_ms=0, jitter_ms=0, sleep=sleeps.append).delay()
        assert sleeps == [0.0]


class TestExecute:
    def test_retries_until_success(self):
        sleeps = []
        calls = {"n": 0}

        def flaky():
            calls["n"] += 1
            if calls["n"] < 3:
                raise ConnectionError("boom")
            return "ok"

        delayer = BackoffDelayer(base_delay_ms=100, max_retries=3, sleep=sleeps.append)
        assert delayer.execute(flaky) == "ok"
        assert calls["n"] == 3
        assert len(sleeps) == 2

    def test_gives_up_after_budget_and_reraises(self):
        sleeps = []
        calls = {"n": 0}

        def always_fails():
            calls["n"] += 1
            raise ConnectionError("down")

        delayer = BackoffDelayer(base_delay_ms=100, max_retries=2, sleep=sleeps.append)
        with pytest.raises(ConnectionError):
            delayer.execute(always_fails)
        assert calls["n"] == 3

    def test_waits_are_capped(self):
        sleeps = []

        def always_fails():
            raise ConnectionError("down")

        delayer = BackoffDelayer(base_delay_ms=1000, max_retries=6, max_delay_ms=2000,
                                 jitter_ms=0, sleep=sleeps.append)
        with pytest.raises(ConnectionError):
            delayer.execute(always_fails)
        assert sleeps and max(sleeps) <= 2.0

    def test_non_matching_exception_is_not_retried(self):
        sleeps = []
        calls = {"n": 0}

        def bad():
            calls["n"] += 1
            raise ValueError("not transient")

        delayer = BackoffDelayer(max_retries=3, sleep=sleeps.append)
        with pytest.raises(ValueError):
            delayer.execute(bad, retry_on=(ConnectionError,))
        assert calls["n"] == 1
        assert sleeps == []
