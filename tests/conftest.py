"""Pytest fixtures: synthetic frames, sample arrays, and a clean config cache."""

import numpy as np
import pytest

from avactivity.core.config import Settings, reset_config
from avactivity.video.frame_source import ArrayFrameSource, VideoInfo

FRAME_W = 4
FRAME_H = 3


def solid_frame(value: int, width: int = FRAME_W, height: int = FRAME_H) -> np.ndarray:
    """RGB uint8 frame filled with one gray level."""
    return np.full((height, width, 3), value, dtype=np.uint8)


def frames_from_levels(levels: list[int]) -> list[np.ndarray]:
    """One solid frame per gray level; consecutive levels more than 30 apart count as activity."""
    return [solid_frame(v) for v in levels]


def video_info_for(frames: list[np.ndarray], fps: float = 25.0) -> VideoInfo:
    height, width = frames[0].shape[:2]
    return VideoInfo(path="synthetic.mp4", num_frames=len(frames), width=width, height=height, fps=fps)


class TriggeringFrameSource(ArrayFrameSource):
    """ArrayFrameSource that calls on_read(index) after each frame is handed out."""

    def __init__(self, frames, on_read) -> None:
        super().__init__(frames)
        self._on_read = on_read

    def read_next(self):
        index = self._pos
        frame = super().read_next()
        if frame is not None:
            self._on_read(index)
        return frame


@pytest.fixture(autouse=True)
def _clean_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def static_frames() -> list[np.ndarray]:
    return frames_from_levels([100] * 10)


@pytest.fixture
def array_source_factory():
    """Return a helper building an ArrayFrameSource and a matching VideoInfo from gray levels."""

    def _make(levels: list[int]) -> tuple[ArrayFrameSource, VideoInfo]:
        frames = frames_from_levels(levels)
        return ArrayFrameSource(frames), video_info_for(frames)

    return _make
