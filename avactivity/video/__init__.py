"""Video frame access (OpenCV), frame differencing, and the video activity scan."""

from avactivity.video.frame_diff import FrameMismatchError, frames_differ
from avactivity.video.frame_source import (
    ArrayFrameSource,
    FrameSource,
    FrameSourceError,
    OpenCVFrameSource,
    VideoInfo,
    probe_video_info,
)
from avactivity.video.video_activity import ScanConsistencyError, mark_video_activity

__all__ = [
    "ArrayFrameSource",
    "FrameMismatchError",
    "FrameSource",
    "FrameSourceError",
    "OpenCVFrameSource",
    "ScanConsistencyError",
    "VideoInfo",
    "frames_differ",
    "mark_video_activity",
    "probe_video_info",
]
