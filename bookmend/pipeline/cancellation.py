"""Cooperative cancellation signal for pipeline runs."""

from __future__ import annotations

from threading import Event


class CancellationToken:
    """Thread-safe flag checked by the transformation loop between segments.

    Setting the flag never interrupts a segment in flight; the loop stops
    before starting the next one.
    """

    def __init__(self) -> None:
        self._event = Event()

    def cancel(self) -> None:
        """Request cancellation at the next segment boundary."""

        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()
