"""Bounded retry with per-attempt timeout and exponential backoff.

Responsibilities:
- Run one operation up to `max_attempts` times.
- Bound every attempt by a wall-clock timeout.
- Sleep `base_delay_seconds * 2**n` after failed attempt `n` when attempts remain.
"""

from __future__ import annotations

from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
import threading
from time import sleep
from typing import Callable, Generic, TypeVar

from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt

T = TypeVar("T")


class AttemptTimeoutError(TimeoutError):
    """Raised when a single attempt exceeds its wall-clock timeout."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Attempt timed out after {timeout_seconds:g} seconds.")
        self.timeout_seconds = timeout_seconds


class RetryExhaustedError(RuntimeError):
    """Raised when every allowed attempt failed.

    Attributes:
        attempts: Number of attempts actually made.
        last_error: Exception raised by the final attempt.
        delays: Backoff sleeps performed between attempts, in seconds.
    """

    def __init__(
        self,
        *,
        attempts: int,
        last_error: BaseException,
        delays: tuple[float, ...] = (),
    ) -> None:
        super().__init__(
            f"Failed after {attempts} attempt(s). Last error: "
            f"{type(last_error).__name__}: {last_error}"
        )
        self.attempts = attempts
        self.last_error = last_error
        self.delays = delays


@dataclass(frozen=True, slots=True)
class RetryOutcome(Generic[T]):
    """Successful operation value with the attempt accounting that produced it."""

    value: T
    attempts: int
    delays: tuple[float, ...] = ()


AttemptFailureHook = Callable[[int, BaseException, float | None], None]


def _always_retry(_error: BaseException) -> bool:
    return True


@dataclass(slots=True)
class RetryPolicy:
    """Retry an operation with timeout-bounded attempts and doubling backoff.

    Attributes:
        max_attempts: Total attempts allowed, including the first.
        base_delay_seconds: Backoff base; failed attempt `n` sleeps `base * 2**n`.
        timeout_seconds: Wall-clock bound for one attempt, or `None` for none.
        sleeper: Injectable sleep function used for backoff waits.
        is_retryable: Predicate deciding whether a failure may be retried.
    """

    max_attempts: int = 5
    base_delay_seconds: float = 1.0
    timeout_seconds: float | None = 180.0
    sleeper: Callable[[float], None] = sleep
    is_retryable: Callable[[BaseException], bool] = field(default=_always_retry)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("`max_attempts` must be at least 1.")
        if self.base_delay_seconds < 0.0:
            raise ValueError("`base_delay_seconds` must be non-negative.")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0.0:
            raise ValueError("`timeout_seconds` must be positive when set.")

    def backoff_delay(self, attempt: int) -> float:
        """Return the sleep after failed attempt `attempt` (1-based)."""

        return self.base_delay_seconds * (2**attempt)

    def execute(
        self,
        operation: Callable[[], T],
        *,
        on_failure: AttemptFailureHook | None = None,
    ) -> RetryOutcome[T]:
        """Run `operation` until it succeeds or attempts are exhausted.

        Args:
            operation: Zero-argument callable performing one attempt.
            on_failure: Optional hook called with the attempt number, the error,
                and the backoff delay that follows (`None` when no retry follows).

        Returns:
            Operation value with attempt count and performed delays.

        Raises:
            RetryExhaustedError: If no attempt succeeded.
        """

        delays: list[float] = []
        attempts = 0

        def attempt_once() -> T:
            nonlocal attempts
            attempts += 1
            return self._run_attempt(operation)

        def before_sleep(retry_state: RetryCallState) -> None:
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            if on_failure is not None and retry_state.outcome is not None:
                on_failure(retry_state.attempt_number, retry_state.outcome.exception(), delay)
            delays.append(delay)

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=lambda retry_state: self.backoff_delay(retry_state.attempt_number),
            retry=retry_if_exception(
                lambda error: isinstance(error, Exception) and self.is_retryable(error)
            ),
            sleep=self.sleeper,
            before_sleep=before_sleep,
            reraise=True,
        )
        try:
            value = retrying(attempt_once)
        except Exception as exc:
            if on_failure is not None:
                on_failure(attempts, exc, None)
            raise RetryExhaustedError(
                attempts=attempts,
                last_error=exc,
                delays=tuple(delays),
            ) from exc
        return RetryOutcome(value=value, attempts=attempts, delays=tuple(delays))

    def _run_attempt(self, operation: Callable[[], T]) -> T:
        """Run one attempt, raising `AttemptTimeoutError` past the timeout.

        The attempt runs in a daemon worker thread. A timed-out call cannot be
        interrupted, so it may still be in flight while the next attempt
        starts; its late result is discarded. Provider clients are built with
        the attempt timeout as their request timeout, which bounds that
        overlap to roughly one attempt budget. Daemon workers never hold up
        interpreter exit.
        """

        if self.timeout_seconds is None:
            return operation()

        future: Future[T] = Future()

        def work() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(operation())
            except BaseException as exc:
                future.set_exception(exc)

        worker = threading.Thread(target=work, name="bookmend-attempt", daemon=True)
        worker.start()
        try:
            return future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError as exc:
            raise AttemptTimeoutError(self.timeout_seconds) from exc
