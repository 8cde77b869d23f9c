"""Per-frame activity strips and their state enums."""

import threading
from enum import Enum
from typing import Iterator


class ActivityState(str, Enum):
    uninitialized = "uninitialized"  # Not scanned yet (or scan cancelled first)
    no_data = "no_data"  # Scan could not run, e.g. no audio track
    inactive = "inactive"
    active = "active"


class Track(str, Enum):
    video = "video"
    audio = "audio"
    either = "either"


class StripWriteError(RuntimeError):
    """Raised when a strip entry that was already written is written again."""

    pass


class ActivityStrip:
    """
    Fixed-length sequence of ActivityState, one entry per video frame.

    Entries start uninitialized and move exactly once to another state. Only the owning
    scanner writes; any thread may read. All access goes through one lock per strip.
    """

    def __init__(self, num_frames: int) -> None:
        if num_frames <= 0:
            raise ValueError(f"An activity strip needs at least one frame, got {num_frames}.")
        self._states: list[ActivityState] = [ActivityState.uninitialized] * num_frames
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._states)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._states):
            raise IndexError(f"Frame index {index} out of range for {len(self._states)} frames.")

    def _write(self, index: int, state: ActivityState) -> None:
        if self._states[index] is not ActivityState.uninitialized:
            raise StripWriteError(
                f"Frame {index} already marked {self._states[index].value}; cannot mark {state.value}."
            )
        self._states[index] = state

    def get(self, index: int) -> ActivityState:
        self._check_index(index)
        with self._lock:
            return self._states[index]

    def set(self, index: int, state: ActivityState) -> None:
        self._check_index(index)
        with self._lock:
            self._write(index, state)

    def fill(self, start: int, stop: int, state: ActivityState) -> None:
        """Write state to entries start..stop-1. An empty range is a no-op."""
        if start >= stop:
            return
        self._check_index(start)
        self._check_index(stop - 1)
        with self._lock:
            for i in range(start, stop):
                self._write(i, state)

    def fill_all(self, state: ActivityState) -> None:
        self.fill(0, len(self._states), state)

    def snapshot(self) -> list[ActivityState]:
        with self._lock:
            return list(self._states)

    def count(self, state: ActivityState) -> int:
        with self._lock:
            return self._states.count(state)

    def is_complete(self) -> bool:
        return self.count(ActivityState.uninitialized) == 0

    def is_active(self, index: int) -> bool:
        return self.get(index) is ActivityState.active

    def segment_start(self, index: int) -> int:
        """Walk back from an active frame to the first frame of its contiguous active run."""
        self._check_index(index)
        with self._lock:
            if self._states[index] is not ActivityState.active:
                raise ValueError(f"Frame {index} is not active ({self._states[index].value}).")
            while index > 0 and self._states[index - 1] is ActivityState.active:
                index -= 1
        return index

    def iter_segments(self) -> Iterator[tuple[int, int]]:
        """Yield (start, end) inclusive ranges of contiguous active frames, in order."""
        yield from active_runs(s is ActivityState.active for s in self.snapshot())


def active_runs(flags) -> Iterator[tuple[int, int]]:
    """Yield (start, end) inclusive ranges where the boolean iterable flags is True."""
    start: int | None = None
    i = -1
    for i, flag in enumerate(flags):
        if flag and start is None:
            start = i
        elif not flag and start is not None:
            yield (start, i - 1)
            start = None
    if start is not None:
        yield (start, i)
