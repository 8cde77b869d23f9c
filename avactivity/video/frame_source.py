"""Frame sources: sequential, seekable access to decoded RGB frames."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

import cv2
import numpy as np

_log = logging.getLogger(__name__)


class FrameSourceError(RuntimeError):
    """Raised when a video cannot be opened or stops delivering frames it claimed to have."""

    pass


@dataclass(frozen=True)
class VideoInfo:
    """Frame count and geometry of a video, known before scanning starts."""

    path: str
    num_frames: int
    width: int
    height: int
    fps: float = 0.0

    @property
    def duration_seconds(self) -> float | None:
        if self.fps <= 0:
            return None
        return self.num_frames / self.fps

    def frame_time(self, index: int) -> float | None:
        """Timestamp in seconds of frame index, or None when fps is unknown."""
        if self.fps <= 0:
            return None
        return index / self.fps


class FrameSource(Protocol):
    """Sequential reader over a video's frames with random seek."""

    num_frames: int
    width: int
    height: int

    def open(self, path: str | Path) -> bool: ...

    def seek(self, index: int) -> None: ...

    def read_next(self) -> np.ndarray | None: ...

    def release(self) -> None: ...


class OpenCVFrameSource:
    """cv2.VideoCapture wrapper yielding RGB uint8 frames of shape (height, width, 3)."""

    def __init__(self) -> None:
        self._cap: cv2.VideoCapture | None = None
        self.num_frames = 0
        self.width = 0
        self.height = 0
        self.fps = 0.0

    def open(self, path: str | Path) -> bool:
        self.release()
        cap = cv2.VideoCapture(str(path))
        if not cap.isOpened():
            cap.release()
            return False
        self._cap = cap
        self.num_frames = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        self.width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        fps = cap.get(cv2.CAP_PROP_FPS)
        self.fps = float(fps) if fps and np.isfinite(fps) else 0.0
        return True

    def _require_open(self) -> cv2.VideoCapture:
        if self._cap is None:
            raise FrameSourceError("Frame source is not open.")
        return self._cap

    def seek(self, index: int) -> None:
        self._require_open().set(cv2.CAP_PROP_POS_FRAMES, index)

    def read_next(self) -> np.ndarray | None:
        ret, frame = self._require_open().read()
        if not ret:
            return None
        if frame.ndim != 3 or frame.shape[2] != 3:
            # Left unconverted; the scanner rejects it with FrameMismatchError.
            return frame
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None


class ArrayFrameSource:
    """Frame source over frames already in memory (decoded elsewhere, or synthesised)."""

    def __init__(self, frames: Sequence[np.ndarray]) -> None:
        self._frames = frames
        self._pos = 0
        self.num_frames = len(frames)
        self.height, self.width = (frames[0].shape[:2] if len(frames) else (0, 0))
        self.reads = 0

    def open(self, path: str | Path) -> bool:
        self._pos = 0
        return self.num_frames > 0

    def seek(self, index: int) -> None:
        if not 0 <= index <= self.num_frames:
            raise FrameSourceError(f"Cannot seek to frame {index} of {self.num_frames}.")
        self._pos = index

    def read_next(self) -> np.ndarray | None:
        if self._pos >= self.num_frames:
            return None
        frame = self._frames[self._pos]
        self._pos += 1
        self.reads += 1
        return frame

    def release(self) -> None:
        pass


def probe_video_info(path: str | Path) -> VideoInfo:
    """
    Open path with OpenCV and read its frame count, size and fps.

    Raises FrameSourceError if the file cannot be opened and ValueError if the frame count
    is zero or unknown (strips cannot be sized).
    """
    source = OpenCVFrameSource()
    if not source.open(path):
        raise FrameSourceError(f"Cannot open video: {path}")
    try:
        info = VideoInfo(
            path=str(path),
            num_frames=source.num_frames,
            width=source.width,
            height=source.height,
            fps=source.fps,
        )
    finally:
        source.release()
    if info.num_frames <= 0:
        raise ValueError(f"The video contains no frames (or its frame count is unknown): {path}")
    _log.debug("Probed %s: %d frames, %dx%d @ %.3f fps", path, info.num_frames, info.width, info.height, info.fps)
    return info
