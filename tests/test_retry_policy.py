"""Tests for retry classification and backoff."""

import httpx
import pytest

from catalog_crawler.ingest.retry_policy import FailureClass, RetryPolicy, Verdict


@pytest.fixture
def policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=4, base_delay_ms=2000, max_delay_ms=30000)


def test_delay_values(policy):
    assert policy.delay_ms(0) == 2000
    assert policy.delay_ms(1) == 4000
    assert policy.delay_ms(3) == 16000
    assert policy.delay_ms(4) == 30000
    assert policy.delay_ms(10) == 30000
    assert policy.delay_ms(500) == 30000


def test_delay_monotonic_and_capped(policy):
    delays = [policy.delay_ms(n) for n in range(40)]

    assert delays == sorted(delays)
    assert max(delays) == 30000


@pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
def test_retryable_statuses(policy, status):
    assert policy.classify(status) is Verdict.RETRYABLE
    assert policy.failure_class(status) is FailureClass.TRANSIENT_SERVER


@pytest.mark.parametrize("status", [400, 401, 403, 404, 410, 501])
def test_fatal_statuses(policy, status):
    assert policy.classify(status) is Verdict.FATAL


def test_network_errors_retryable(policy):
    request = httpx.Request("GET", "https://catalog.test/")
    for exc in (
        httpx.ConnectError("dns failure", request=request),
        httpx.ReadTimeout("timed out", request=request),
        httpx.ReadError("connection reset", request=request),
        ConnectionResetError(),
    ):
        assert policy.classify(exc) is Verdict.RETRYABLE
        assert policy.failure_class(exc) is FailureClass.TRANSIENT_NETWORK


def test_malformed_url_fatal(policy):
    assert policy.classify(httpx.InvalidURL("bad")) is Verdict.FATAL
    assert policy.classify(httpx.UnsupportedProtocol("ftp")) is Verdict.FATAL


def test_decide_retries_until_budget_exhausted(policy):
    decisions = [policy.decide(attempt, 503, "https://catalog.test/apps") for attempt in range(4)]

    assert [d.retry for d in decisions] == [True, True, True, False]
    assert [d.delay_ms for d in decisions[:3]] == [2000, 4000, 8000]
    assert decisions[-1].cause == "HTTP 503"
    assert decisions[-1].failure_class is FailureClass.TRANSIENT_SERVER


def test_decide_fatal_gives_up_immediately(policy):
    decision = policy.decide(0, 404)

    assert decision.retry is False
    assert decision.failure_class is FailureClass.FATAL_REQUEST


def test_decision_is_logged(policy, caplog):
    with caplog.at_level("WARNING"):
        policy.decide(1, 429, "https://catalog.test/apps")

    assert "HTTP 429" in caplog.text
    assert "4000ms" in caplog.text
    assert "attempt 2/4" in caplog.text


def test_invalid_budget():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
