"""Audio activity: mark frames whose representative sample is louder than a whole-track threshold."""

import logging

import numpy as np

from avactivity.audio.samples import SampleSource
from avactivity.core.cancellation import CancelPoller, CancelToken
from avactivity.core.coalescing import coalescing_window, force_active_run
from avactivity.core.config import Settings
from avactivity.models.activity import ActivityState, ActivityStrip

_log = logging.getLogger(__name__)


def amplitude_stats(samples: np.ndarray) -> tuple[float, int]:
    """Return (average, peak) amplitude: mean of signed samples and max absolute value."""
    wide = samples.astype(np.int64, copy=False)
    average = float(wide.sum(dtype=np.int64)) / wide.shape[0]
    peak = int(np.abs(wide).max())
    return average, peak


def compute_audio_threshold(samples: np.ndarray, scale: float) -> float:
    """
    Loudness cutoff: (peak - average) * scale.

    A rough heuristic rather than a percentile; kept as the default behaviour.
    """
    average, peak = amplitude_stats(samples)
    return (peak - average) * scale


def representative_sample_indices(num_samples: int, num_frames: int) -> np.ndarray:
    """Sample index for each frame by linear time scaling, rounded and clamped to the track."""
    scaled = np.rint(np.arange(num_frames, dtype=np.float64) * (num_samples / num_frames))
    return np.minimum(scaled.astype(np.int64), num_samples - 1)


def loud_frames(samples: np.ndarray, num_frames: int, threshold: float) -> np.ndarray:
    """Boolean mask: True where the frame's representative sample exceeds |threshold|."""
    indices = representative_sample_indices(samples.shape[0], num_frames)
    picked = np.abs(samples[indices].astype(np.int64))
    return picked > abs(threshold)


def mark_audio_activity(
    strip: ActivityStrip,
    samples: SampleSource | None,
    settings: Settings,
    cancel: CancelToken,
) -> bool:
    """
    Populate strip from the audio samples. Returns True if the scan ran to the end.

    Without samples every frame becomes no_data. On cancellation the remaining entries are
    left uninitialized.
    """
    num_frames = len(strip)
    if samples is None or samples.num_samples == 0:
        _log.info("No usable audio; marking %d frames as no_data", num_frames)
        strip.fill_all(ActivityState.no_data)
        return True

    threshold = compute_audio_threshold(samples.samples, settings.audio_threshold_scale)
    loud = loud_frames(samples.samples, num_frames, threshold)
    window = coalescing_window(num_frames, settings.window_divisor)
    poller = CancelPoller(cancel, settings.cancel_poll_interval)
    _log.debug(
        "Audio scan: %d samples, %d frames, threshold %.3f, window %d",
        samples.num_samples,
        num_frames,
        threshold,
        window,
    )

    i = 0
    while i < num_frames:
        if poller.should_stop(i):
            _log.info("Audio scan cancelled at frame %d of %d", i, num_frames)
            return False
        if loud[i]:
            strip.set(i, ActivityState.active)
            i = force_active_run(strip, i, window) + 1
        else:
            strip.set(i, ActivityState.inactive)
            i += 1

    _log.info("Audio scan finished: %d of %d frames active", strip.count(ActivityState.active), num_frames)
    return True
