"""Cooperative cancellation shared by the audio and video scan tasks."""

import threading


class CancelToken:
    """One-shot stop signal. Set once by the owner; polled by every scanner it is passed to."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


class CancelPoller:
    """
    Checks a CancelToken only when the scan index crosses a multiple of interval.

    Scanners jump ahead over coalesced runs, so the check fires on the first index at or
    past each boundary rather than on exact multiples.
    """

    def __init__(self, token: CancelToken, interval: int) -> None:
        if interval <= 0:
            raise ValueError("poll interval must be positive")
        self._token = token
        self._interval = interval
        self._next_check = interval

    def should_stop(self, index: int) -> bool:
        if index < self._next_check:
            return False
        self._next_check = (index // self._interval + 1) * self._interval
        return self._token.is_cancelled
