"""Activity session: owns both strips, runs the audio and video scans in parallel, answers queries."""

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable

from avactivity.audio.audio_activity import mark_audio_activity
from avactivity.audio.extractor import AudioExtractor, FFmpegAudioExtractor, NullAudioExtractor
from avactivity.audio.samples import SampleSource
from avactivity.core.cancellation import CancelToken
from avactivity.core.config import Settings, get_config
from avactivity.models.activity import ActivityState, ActivityStrip, Track, active_runs
from avactivity.video.frame_source import FrameSource, FrameSourceError, OpenCVFrameSource, VideoInfo
from avactivity.video.video_activity import mark_video_activity

_log = logging.getLogger(__name__)

AUDIO_UNAVAILABLE_MESSAGE = "The audio track could not be processed."


class ActivitySession:
    """
    Per-video activity data. Strips are allocated at construction; start() launches the
    video and audio scans on two worker threads that each write only their own strip.

    Queries are safe while scanning: entries not yet written read as uninitialized and
    mean "unknown", not "inactive". Faults raised inside a scan surface from wait().
    """

    def __init__(
        self,
        info: VideoInfo,
        *,
        settings: Settings | None = None,
        frame_source_factory: Callable[[], FrameSource] = OpenCVFrameSource,
        audio_extractor: AudioExtractor | None = None,
        on_message: Callable[[str], None] | None = None,
    ) -> None:
        if info.num_frames <= 0:
            raise ValueError(f"The video contains no frames: {info.path}")
        self.info = info
        self._settings = settings if settings is not None else get_config()
        self._frame_source_factory = frame_source_factory
        self._audio_extractor = (
            audio_extractor if audio_extractor is not None else FFmpegAudioExtractor(self._settings.ffmpeg_path)
        )
        self._on_message = on_message
        self._cancel = CancelToken()
        self._samples: SampleSource | None = None
        self.video_strip = ActivityStrip(info.num_frames)
        self.audio_strip = ActivityStrip(info.num_frames)
        self._executor: ThreadPoolExecutor | None = None
        self._futures: list[Future] = []

    def __enter__(self) -> "ActivitySession":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_cancelled

    def start(self) -> "ActivitySession":
        """Launch both scans. Calling start() twice is an error."""
        if self._executor is not None:
            raise RuntimeError("Activity scan already started.")
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="activity")
        self._futures = [
            self._executor.submit(self._run_video_scan),
            self._executor.submit(self._run_audio_scan),
        ]
        return self

    def cancel(self) -> None:
        """Ask both scans to stop at their next poll point."""
        self._cancel.cancel()

    def wait(self, timeout: float | None = None) -> bool:
        """
        Block until both scans finish (or timeout). Returns True when both are done.
        Re-raises the first fault raised by either scan.
        """
        if not self._futures:
            return False
        done, not_done = wait(self._futures, timeout=timeout)
        for future in self._futures:
            if future in done:
                future.result()
        return not not_done

    def close(self) -> None:
        """Cancel any running scan, wait for both threads, and release the executor."""
        if self._futures and not self.scan_complete():
            self.cancel()
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    def _notify(self, message: str) -> None:
        if self._on_message is not None:
            self._on_message(message)

    def _run_video_scan(self) -> bool:
        source = self._frame_source_factory()
        if not source.open(self.info.path):
            raise FrameSourceError(f"Failed to open the video file: {self.info.path}")
        try:
            return mark_video_activity(self.video_strip, source, self.info, self._settings, self._cancel)
        finally:
            source.release()

    def _run_audio_scan(self) -> bool:
        samples = self._audio_extractor.extract(self.info.path, self._cancel)
        if samples is None and self._cancel.is_cancelled:
            _log.info("Audio extraction cancelled for %s", self.info.path)
            return False
        if samples is not None and samples.num_samples > 0:
            self._samples = samples
        elif isinstance(self._audio_extractor, NullAudioExtractor):
            _log.info("Audio disabled for %s", self.info.path)
        else:
            _log.warning("No audio track available for %s; audio activity will not be shown.", self.info.path)
            self._notify(AUDIO_UNAVAILABLE_MESSAGE)
        return mark_audio_activity(self.audio_strip, self._samples, self._settings, self._cancel)

    # --- Queries ---

    def _strip(self, track: Track) -> ActivityStrip:
        track = Track(track)
        if track is Track.video:
            return self.video_strip
        if track is Track.audio:
            return self.audio_strip
        raise ValueError(f"Track {track.value!r} does not name a single strip.")

    def state_at(self, index: int, track: Track) -> ActivityState:
        return self._strip(track).get(index)

    def is_active_at(self, index: int, track: Track) -> bool:
        track = Track(track)
        if track is Track.either:
            return self.video_strip.is_active(index) or self.audio_strip.is_active(index)
        return self._strip(track).is_active(index)

    def has_usable_audio(self) -> bool:
        return self._samples is not None and self._samples.num_samples > 0

    @property
    def audio_sample_rate(self) -> int | None:
        """Sample rate of the extracted audio, when known."""
        return self._samples.sample_rate if self._samples is not None else None

    def scan_complete(self) -> bool:
        """True once both scans have finished, naturally or via cancellation."""
        return bool(self._futures) and all(f.done() for f in self._futures)

    def find_segment_start(self, index: int, track: Track) -> int:
        """First frame of the contiguous active run containing the active frame index."""
        return self._strip(track).segment_start(index)

    def segments(self, track: Track) -> list[tuple[int, int]]:
        """Inclusive (start, end) active runs; Track.either merges both strips."""
        track = Track(track)
        if track is not Track.either:
            return list(self._strip(track).iter_segments())
        video = self.video_strip.snapshot()
        audio = self.audio_strip.snapshot()
        return list(
            active_runs(v is ActivityState.active or a is ActivityState.active for v, a in zip(video, audio))
        )
