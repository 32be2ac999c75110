"""Retry classification and exponential backoff for crawl requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import httpx

from catalog_crawler.config import settings

logger = logging.getLogger(__name__)

# Transport errors worth retrying (timeouts, resets, DNS/connect failures)
RETRYABLE_EXC = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    ConnectionError,
    TimeoutError,
)

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class Verdict(str, Enum):
    """Whether a failure may be retried."""
    RETRYABLE = "retryable"
    FATAL = "fatal"


class FailureClass(str, Enum):
    """Error taxonomy for single-request failures."""
    TRANSIENT_NETWORK = "transient-network"
    TRANSIENT_SERVER = "transient-server"
    FATAL_REQUEST = "fatal-request"


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of consulting the policy after a failed attempt."""

    retry: bool
    delay_ms: int
    attempt: int
    cause: str
    failure_class: FailureClass

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000.0


ErrorOrStatus = Union[BaseException, int]


class RetryPolicy:
    """
    Decides whether a failed request is retried, and after how long.

    Attempts are numbered from 0. The delay before the retry that follows
    attempt ``n`` is ``min(cap, base * 2**n)``. A logical request gets at
    most ``max_attempts`` attempts; a retryable failure on the last one is
    treated as fatal for that request only.
    """

    def __init__(
        self,
        max_attempts: Optional[int] = None,
        base_delay_ms: Optional[int] = None,
        max_delay_ms: Optional[int] = None,
    ):
        self.max_attempts = max_attempts if max_attempts is not None else settings.max_retries
        self.base_delay_ms = base_delay_ms if base_delay_ms is not None else settings.backoff_base_ms
        self.max_delay_ms = max_delay_ms if max_delay_ms is not None else settings.backoff_cap_ms
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @staticmethod
    def failure_class(error_or_status: ErrorOrStatus) -> FailureClass:
        """Place a transport error or HTTP status in the error taxonomy."""
        if isinstance(error_or_status, bool):
            return FailureClass.FATAL_REQUEST
        if isinstance(error_or_status, int):
            if error_or_status in RETRYABLE_STATUSES:
                return FailureClass.TRANSIENT_SERVER
            return FailureClass.FATAL_REQUEST
        if isinstance(error_or_status, httpx.HTTPStatusError):
            return RetryPolicy.failure_class(error_or_status.response.status_code)
        if isinstance(error_or_status, RETRYABLE_EXC):
            return FailureClass.TRANSIENT_NETWORK
        return FailureClass.FATAL_REQUEST

    def classify(self, error_or_status: ErrorOrStatus) -> Verdict:
        """Classify a failure as retryable or fatal."""
        if self.failure_class(error_or_status) is FailureClass.FATAL_REQUEST:
            return Verdict.FATAL
        return Verdict.RETRYABLE

    @staticmethod
    def cause_label(error_or_status: ErrorOrStatus) -> str:
        """Short label used in logs and metrics."""
        if isinstance(error_or_status, int) and not isinstance(error_or_status, bool):
            return f"HTTP {error_or_status}"
        if isinstance(error_or_status, httpx.HTTPStatusError):
            return f"HTTP {error_or_status.response.status_code}"
        return type(error_or_status).__name__

    def delay_ms(self, attempt: int) -> int:
        """Backoff delay after the given (0-based) attempt."""
        if attempt < 0:
            raise ValueError("attempt must be non-negative")
        # Avoid building huge integers for large attempt numbers
        if attempt >= 32:
            return self.max_delay_ms
        return min(self.max_delay_ms, self.base_delay_ms * (2 ** attempt))

    def decide(self, attempt: int, error_or_status: ErrorOrStatus, url: str = "") -> RetryDecision:
        """
        Decide what to do after a failed attempt.

        Args:
            attempt: 0-based number of the attempt that failed
            error_or_status: Transport exception or HTTP status code
            url: Target URL (for logging)

        Returns:
            RetryDecision
        """
        failure_class = self.failure_class(error_or_status)
        cause = self.cause_label(error_or_status)
        budget_left = attempt + 1 < self.max_attempts

        if failure_class is not FailureClass.FATAL_REQUEST and budget_left:
            decision = RetryDecision(
                retry=True,
                delay_ms=self.delay_ms(attempt),
                attempt=attempt,
                cause=cause,
                failure_class=failure_class,
            )
            logger.warning(
                f"Retrying {url or 'request'} after {cause} ({failure_class.value}) "
                f"in {decision.delay_ms}ms (attempt {attempt + 1}/{self.max_attempts})"
            )
            return decision

        if failure_class is FailureClass.FATAL_REQUEST:
            logger.warning(
                f"Giving up on {url or 'request'}: {cause} is fatal "
                f"(attempt {attempt + 1}/{self.max_attempts})"
            )
        else:
            logger.error(
                f"Giving up on {url or 'request'}: {cause} ({failure_class.value}) "
                f"after {attempt + 1}/{self.max_attempts} attempts"
            )
        return RetryDecision(
            retry=False,
            delay_ms=0,
            attempt=attempt,
            cause=cause,
            failure_class=failure_class,
        )
