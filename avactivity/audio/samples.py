"""Mono amplitude sample sequences and WAV loading."""

import wave
from pathlib import Path

import numpy as np

_WAV_DTYPES = {
    1: np.uint8,
    2: np.dtype("<i2"),
    4: np.dtype("<i4"),
}


class SampleSource:
    """
    Signed integer amplitudes for a mono track, time-aligned to the video duration.

    Samples are kept as a 1-D numpy integer array; arithmetic on them should widen to int64.
    """

    def __init__(self, samples: np.ndarray, sample_rate: int | None = None) -> None:
        arr = np.asarray(samples)
        if arr.ndim != 1:
            raise ValueError(f"Expected mono samples (1-D), got shape {arr.shape}.")
        if not np.issubdtype(arr.dtype, np.integer):
            raise ValueError(f"Expected integer samples, got dtype {arr.dtype}.")
        self._samples = arr
        self.sample_rate = sample_rate

    @property
    def num_samples(self) -> int:
        return int(self._samples.shape[0])

    @property
    def samples(self) -> np.ndarray:
        return self._samples

    def sample_at(self, index: int) -> int:
        return int(self._samples[index])

    def __len__(self) -> int:
        return self.num_samples

    @classmethod
    def from_wav(cls, path: str | Path) -> "SampleSource":
        """
        Load PCM WAV data (8, 16 or 32 bit). 8-bit unsigned data is re-centred around zero.
        Raises ValueError for multi-channel or unsupported sample widths.
        """
        with wave.open(str(path), "rb") as wav:
            channels = wav.getnchannels()
            width = wav.getsampwidth()
            rate = wav.getframerate()
            raw = wav.readframes(wav.getnframes())
        if channels != 1:
            raise ValueError(f"Only mono audio is supported, {path} has {channels} channels.")
        dtype = _WAV_DTYPES.get(width)
        if dtype is None:
            raise ValueError(f"Unsupported WAV sample width: {width} bytes.")
        samples = np.frombuffer(raw, dtype=dtype)
        if width == 1:
            samples = samples.astype(np.int16) - 128
        return cls(samples, sample_rate=rate)
