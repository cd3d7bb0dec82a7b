import time
from collections.abc import Callable
from typing import TypeVar


T = TypeVar("T")


class RetryExhaustedError(RuntimeError):
    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


def run_with_retries(
    fn: Callable[[], T],
    *,
    max_retries: int,
    backoff_seconds: float,
    should_retry: Callable[[Exception], bool] | None = None,
) -> T:
    last_error: Exception | None = None
    attempts = 0

    for attempt in range(1, max_retries + 2):
        attempts = attempt
        try:
            return fn()
        except Exception as exc:
            # Non-retryable errors keep their own type so callers can classify them.
            if should_retry is not None and not should_retry(exc):
                raise
            last_error = exc
            if attempt > max_retries:
                break
            time.sleep(backoff_seconds * attempt)

    raise RetryExhaustedError(f"failed after {attempts} attempts: {last_error}", attempts) from last_error
