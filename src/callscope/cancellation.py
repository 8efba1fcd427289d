"""Cooperative cancellation for analysis runs."""

import threading


class CancelledRunError(Exception):
    """Raised inside a run when its cancellation token has been triggered."""

    pass


class CancellationToken:
    """Flag checked by long-running work at iteration boundaries."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation. Never blocks."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Abort the current run if cancellation was requested.

        Raises:
            CancelledRunError: If cancel() has been called.
        """
        if self._event.is_set():
            raise CancelledRunError("Run was cancelled")


def check_cancelled(token: CancellationToken | None) -> None:
    """raise_if_cancelled() for an optional token."""
    if token is not None:
        token.raise_if_cancelled()
