"""Generic retry/backoff invocation built on tenacity.

The OCR call and the stage hand-off both go through :func:`invoke`, each with
its own policy and retry predicate.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from tenacity import RetryError, Retrying, retry_if_exception, stop_after_attempt

from .cancellation import CancellationToken, ensure_token
from .exceptions import InvocationFailureError, OcrServiceError, OperationCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many retries to allow and how long to wait before retry ``n`` (1-based)."""

    max_retries: int
    delay_fn: Callable[[int], float]

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


def exponential_delay(base: float = 1.0) -> Callable[[int], float]:
    """``base * 2^(n-1)``: 1s, 2s, 4s... for base 1s."""
    return lambda attempt: base * (2 ** (attempt - 1))


def linear_delay(base: float = 1.0) -> Callable[[int], float]:
    """``base * n``: 1s, 2s, 3s... for base 1s."""
    return lambda attempt: base * attempt


def ocr_policy(max_retries: int = 2, base_delay: float = 1.0) -> RetryPolicy:
    return RetryPolicy(max_retries=max_retries, delay_fn=exponential_delay(base_delay))


def handoff_policy(max_retries: int = 2, base_delay: float = 1.0) -> RetryPolicy:
    return RetryPolicy(max_retries=max_retries, delay_fn=linear_delay(base_delay))


def retry_all(error: BaseException) -> bool:
    return True


def is_transient_ocr_error(error: BaseException) -> bool:
    """Only throttling, service-unavailable and internal errors are retried."""
    return isinstance(error, OcrServiceError) and error.transient


def invoke(action: Callable[[], T],
           policy: RetryPolicy,
           correlation_id: Optional[str],
           is_retryable: Callable[[BaseException], bool] = retry_all,
           cancel_token: Optional[CancellationToken] = None,
           operation: str = "invocation") -> T:
    """Run ``action`` under ``policy``.

    Raises InvocationFailureError once retries are exhausted. Errors that
    ``is_retryable`` rejects propagate unchanged after the first failure.
    Cancellation is checked before every attempt and ends backoff waits early.
    """
    token = ensure_token(cancel_token)

    def should_retry(error: BaseException) -> bool:
        if isinstance(error, OperationCancelledError):
            return False
        return is_retryable(error)

    def wait(retry_state) -> float:
        return policy.delay_fn(retry_state.attempt_number)

    def sleep(seconds: float):
        if token.wait(seconds):
            logger.warning(f"{operation} cancelled during backoff. CorrelationId: {correlation_id}")
            raise OperationCancelledError(token.reason or f"{operation} was cancelled")

    def log_retry(retry_state):
        error = retry_state.outcome.exception()
        logger.warning(
            f"{operation} failed, retrying. CorrelationId: {correlation_id}, "
            f"Attempt: {retry_state.attempt_number}/{policy.max_attempts}, "
            f"Delay: {retry_state.next_action.sleep:.2f}s, Error: {error}"
        )

    def run_attempt() -> T:
        token.raise_if_cancelled()
        return action()

    retryer = Retrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait,
        retry=retry_if_exception(should_retry),
        sleep=sleep,
        before_sleep=log_retry,
        reraise=False,
    )

    try:
        return retryer(run_attempt)
    except RetryError as e:
        last_error = e.last_attempt.exception()
        attempts = e.last_attempt.attempt_number
        logger.error(
            f"{operation} failed after all retries. CorrelationId: {correlation_id}, "
            f"Attempts: {attempts}, Error: {last_error}"
        )
        raise InvocationFailureError(
            f"{operation} failed after {attempts} attempts: {last_error}",
            correlation_id=correlation_id,
            attempts=attempts,
            cause=last_error,
        ) from last_error
