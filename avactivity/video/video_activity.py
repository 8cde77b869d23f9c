"""Video activity: mark frames that differ visibly from their predecessor."""

import logging

import numpy as np

from avactivity.core.cancellation import CancelPoller, CancelToken
from avactivity.core.coalescing import coalescing_window, force_active_run
from avactivity.core.config import Settings
from avactivity.models.activity import ActivityState, ActivityStrip
from avactivity.video.frame_diff import FrameMismatchError, frames_differ
from avactivity.video.frame_source import FrameSource, FrameSourceError, VideoInfo

_log = logging.getLogger(__name__)


class ScanConsistencyError(RuntimeError):
    """Raised when a scan that ran to the end left strip entries unwritten."""

    pass


def _read_frame(source: FrameSource, index: int, info: VideoInfo) -> np.ndarray:
    """Read the next frame and check it is a 3-channel image of the video's declared size."""
    frame = source.read_next()
    if frame is None:
        raise FrameSourceError(f"Frame source ended at frame {index} of {info.num_frames}.")
    if frame.ndim != 3 or frame.shape[2] != 3:
        raise FrameMismatchError(f"Expected three color channels in frame {index}, got shape {frame.shape}.")
    if frame.shape[0] * frame.shape[1] != info.width * info.height:
        raise FrameMismatchError(
            f"Frame {index} has {frame.shape[1]}x{frame.shape[0]} pixels, expected {info.width}x{info.height}."
        )
    return frame


def _check_pair(frame: np.ndarray, prev: np.ndarray, index: int) -> None:
    if frame.shape[2] != prev.shape[2]:
        raise FrameMismatchError(f"Found mismatched channel counts at frame {index}.")
    if frame.shape[0] * frame.shape[1] != prev.shape[0] * prev.shape[1]:
        raise FrameMismatchError(f"Found mismatched frame sizes at frame {index}.")


def mark_video_activity(
    strip: ActivityStrip,
    source: FrameSource,
    info: VideoInfo,
    settings: Settings,
    cancel: CancelToken,
) -> bool:
    """
    Compare consecutive frames and populate strip. Returns True if the scan ran to the end.

    Frame 0 is always inactive. After an active frame the next window frames are marked
    active without decoding; the frame after that run is marked inactive and read as the
    new comparison baseline without diffing it against its real predecessor. Clips shorter
    than window_divisor frames (window 0) are diffed frame by frame with no skipping.

    The source must already be open. On cancellation, trailing entries stay uninitialized.
    """
    num_frames = len(strip)
    window = coalescing_window(num_frames, settings.window_divisor)
    threshold = settings.video_diff_threshold
    poller = CancelPoller(cancel, settings.cancel_poll_interval)
    _log.debug("Video scan: %d frames, threshold %d, window %d", num_frames, threshold, window)

    source.seek(0)
    prev = _read_frame(source, 0, info)
    strip.set(0, ActivityState.inactive)

    i = 1
    while i < num_frames:
        if poller.should_stop(i):
            _log.info("Video scan cancelled at frame %d of %d", i, num_frames)
            return False

        frame = _read_frame(source, i, info)
        _check_pair(frame, prev, i)
        if not frames_differ(frame, prev, threshold):
            strip.set(i, ActivityState.inactive)
            prev = frame
            i += 1
            continue

        strip.set(i, ActivityState.active)
        if window == 0:
            prev = frame
            i += 1
            continue
        baseline = force_active_run(strip, i, window) + 1
        if baseline < num_frames:
            strip.set(baseline, ActivityState.inactive)
            source.seek(baseline)
            prev = _read_frame(source, baseline, info)
        i = baseline + 1

    if not strip.is_complete():
        raise ScanConsistencyError(
            f"Some frames were skipped while marking video activity "
            f"({strip.count(ActivityState.uninitialized)} of {num_frames} unwritten)."
        )
    _log.info("Video scan finished: %d of %d frames active", strip.count(ActivityState.active), num_frames)
    return True
