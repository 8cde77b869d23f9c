"""Audio extraction (FFmpeg), sample loading, and the audio activity scan."""

from avactivity.audio.audio_activity import compute_audio_threshold, mark_audio_activity
from avactivity.audio.extractor import AudioExtractor, FFmpegAudioExtractor, NullAudioExtractor
from avactivity.audio.samples import SampleSource

__all__ = [
    "AudioExtractor",
    "FFmpegAudioExtractor",
    "NullAudioExtractor",
    "SampleSource",
    "compute_audio_threshold",
    "mark_audio_activity",
]
