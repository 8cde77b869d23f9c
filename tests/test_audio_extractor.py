"""Tests for FFmpegAudioExtractor: degraded-mode handling with FFmpeg mocked out."""

import subprocess
import wave
from pathlib import Path
from unittest.mock import patch

import numpy as np
import pytest

from avactivity.audio.extractor import FFmpegAudioExtractor, NullAudioExtractor, ffmpeg_extract_cmd
from avactivity.core.cancellation import CancelToken

pytestmark = [pytest.mark.fast]


class _FakeProcess:
    """Minimal subprocess.Popen stand-in. Optionally writes output to the command's last argument."""

    def __init__(self, cmd, *, write=None, returncode=0, stderr="", running=False, on_communicate=None):
        self.args = cmd
        self.returncode = None
        self._final = returncode
        self._stderr = stderr
        self._running = running
        self._on_communicate = on_communicate
        self.communicate_calls = 0
        self.terminated = False
        if write is not None:
            write(Path(cmd[-1]))

    def communicate(self, timeout=None):
        self.communicate_calls += 1
        if self._on_communicate is not None:
            self._on_communicate()
        if self._running:
            raise subprocess.TimeoutExpired(self.args, timeout)
        self.returncode = self._final
        return None, self._stderr

    def terminate(self):
        self.terminated = True
        self.returncode = -15

    def kill(self):
        self.returncode = -9

    def wait(self, timeout=None):
        return self.returncode


def _wav_writer(samples: np.ndarray):
    def _write(dest: Path) -> None:
        with wave.open(str(dest), "wb") as wav:
            wav.setnchannels(1)
            wav.setsampwidth(2)
            wav.setframerate(8000)
            wav.writeframes(samples.astype("<i2").tobytes())

    return _write


def _fake_ffmpeg(**kwargs):
    """side_effect for subprocess.Popen; created processes are kept on .created."""
    created: list[_FakeProcess] = []

    def _popen(cmd, **popen_kwargs):
        proc = _FakeProcess(cmd, **kwargs)
        created.append(proc)
        return proc

    _popen.created = created
    return _popen


def test_extract_cmd_requests_mono_pcm16():
    cmd = ffmpeg_extract_cmd("ffmpeg", Path("in.mp4"), Path("/tmp/out.wav"))
    assert cmd[0] == "ffmpeg"
    assert cmd[cmd.index("-acodec") + 1] == "pcm_s16le"
    assert cmd[cmd.index("-ac") + 1] == "1"
    assert cmd[-1] == "/tmp/out.wav"


def test_extract_success_returns_samples(tmp_path):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"fake")
    data = np.array([0, 100, -100, 500], dtype=np.int16)
    with patch("avactivity.audio.extractor.subprocess.Popen", side_effect=_fake_ffmpeg(write=_wav_writer(data))):
        samples = FFmpegAudioExtractor().extract(video)
    assert samples is not None
    assert samples.num_samples == 4
    assert samples.sample_rate == 8000
    np.testing.assert_array_equal(samples.samples, data)


def test_extract_uses_configured_ffmpeg_path(tmp_path):
    fake = _fake_ffmpeg(write=_wav_writer(np.zeros(4, dtype=np.int16)))
    with patch("avactivity.audio.extractor.subprocess.Popen", side_effect=fake) as popen:
        FFmpegAudioExtractor("/opt/ffmpeg/bin/ffmpeg").extract(tmp_path / "v.mp4")
    assert popen.call_args[0][0][0] == "/opt/ffmpeg/bin/ffmpeg"


def test_extract_nonzero_exit_returns_none(tmp_path, caplog):
    fake = _fake_ffmpeg(returncode=1, stderr="Output file #0 does not contain any stream")
    with patch("avactivity.audio.extractor.subprocess.Popen", side_effect=fake):
        assert FFmpegAudioExtractor().extract(tmp_path / "v.mp4") is None
    assert "does not contain any stream" in caplog.text


def test_extract_missing_ffmpeg_returns_none(tmp_path):
    with patch("avactivity.audio.extractor.subprocess.Popen", side_effect=FileNotFoundError("ffmpeg")):
        assert FFmpegAudioExtractor().extract(tmp_path / "v.mp4") is None


def test_extract_ffmpeg_not_executable_returns_none(tmp_path, caplog):
    with patch(
        "avactivity.audio.extractor.subprocess.Popen",
        side_effect=PermissionError(13, "Permission denied"),
    ):
        assert FFmpegAudioExtractor("/opt/bin/ffmpeg").extract(tmp_path / "v.mp4") is None
    assert "Could not run FFmpeg" in caplog.text


def test_extract_empty_output_returns_none(tmp_path):
    """FFmpeg exits 0 but writes nothing."""
    with patch("avactivity.audio.extractor.subprocess.Popen", side_effect=_fake_ffmpeg()):
        assert FFmpegAudioExtractor().extract(tmp_path / "v.mp4") is None


def test_extract_unreadable_wav_returns_none(tmp_path):
    fake = _fake_ffmpeg(write=lambda dest: dest.write_bytes(b"not a wav file at all"))
    with patch("avactivity.audio.extractor.subprocess.Popen", side_effect=fake):
        assert FFmpegAudioExtractor().extract(tmp_path / "v.mp4") is None


def test_temp_wav_is_removed(tmp_path):
    written: list[Path] = []
    writer = _wav_writer(np.zeros(4, dtype=np.int16))

    def _write(dest: Path) -> None:
        written.append(dest)
        writer(dest)

    with patch("avactivity.audio.extractor.subprocess.Popen", side_effect=_fake_ffmpeg(write=_write)):
        FFmpegAudioExtractor().extract(tmp_path / "v.mp4")
    assert written and not written[0].exists()


def test_cancel_while_running_terminates_ffmpeg(tmp_path):
    token = CancelToken()
    fake = _fake_ffmpeg(running=True, on_communicate=token.cancel)
    with patch("avactivity.audio.extractor.subprocess.Popen", side_effect=fake):
        assert FFmpegAudioExtractor().extract(tmp_path / "v.mp4", token) is None
    proc = fake.created[0]
    assert proc.communicate_calls == 1
    assert proc.terminated is True


def test_already_cancelled_skips_waiting(tmp_path):
    token = CancelToken()
    token.cancel()
    fake = _fake_ffmpeg(running=True)
    with patch("avactivity.audio.extractor.subprocess.Popen", side_effect=fake):
        assert FFmpegAudioExtractor().extract(tmp_path / "v.mp4", token) is None
    assert fake.created[0].communicate_calls == 0
    assert fake.created[0].terminated is True


def test_null_extractor_has_no_audio(tmp_path):
    assert NullAudioExtractor().extract(tmp_path / "v.mp4") is None
