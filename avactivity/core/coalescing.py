"""Coalescing of activity: one active frame forces a short run of following frames active.

Makes brief blips wide enough to click on a timeline strip, and lets the video scanner
skip decoding inside the run.
"""

from avactivity.models.activity import ActivityState, ActivityStrip


def coalescing_window(num_frames: int, divisor: int) -> int:
    """Number of frames forced active after a triggering frame (0 for clips shorter than divisor)."""
    if divisor <= 0:
        raise ValueError("window divisor must be positive")
    return num_frames // divisor


def force_active_run(strip: ActivityStrip, index: int, window: int) -> int:
    """
    Mark frames index+1 .. index+window active, clamped to the end of the strip.

    Returns the last index of the run (index itself when window is 0 or index is the last frame).
    """
    end = min(index + window, len(strip) - 1)
    strip.fill(index + 1, end + 1, ActivityState.active)
    return end
