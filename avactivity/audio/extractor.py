"""Audio track extraction via an external FFmpeg process."""

import logging
import shlex
import subprocess
import tempfile
import wave
from pathlib import Path
from typing import Protocol

from avactivity.audio.samples import SampleSource
from avactivity.core.cancellation import CancelToken

_log = logging.getLogger(__name__)

_DEFAULT_STDERR_TAIL_LINES = 40
_CANCEL_POLL_SECONDS = 0.5


class AudioExtractor(Protocol):
    """Produces a mono sample sequence for a media file, or None when no audio is available."""

    def extract(self, path: str | Path, cancel: CancelToken | None = None) -> SampleSource | None: ...


def _cmd_to_repro(cmd: list[str]) -> str:
    """Render a shell-safe repro command line for copy/paste."""
    return " ".join(shlex.quote(str(c)) for c in cmd)


def _stderr_tail(stderr: str, *, max_lines: int = _DEFAULT_STDERR_TAIL_LINES) -> str:
    if not stderr:
        return ""
    lines = stderr.strip().splitlines()
    return "\n".join(lines[-max_lines:]).strip()


def _file_non_empty(path: Path) -> bool:
    try:
        return path.exists() and path.stat().st_size > 0
    except OSError:
        return False


def ffmpeg_extract_cmd(ffmpeg_path: str, source: Path, dest: Path) -> list[str]:
    """FFmpeg argv that writes the source's audio as mono signed 16-bit PCM WAV."""
    return [
        ffmpeg_path,
        "-i",
        str(source),
        "-flags",
        "bitexact",
        "-map_metadata",
        "-1",
        "-acodec",
        "pcm_s16le",
        "-ac",
        "1",
        "-y",
        str(dest),
    ]


def _stop_process(proc: subprocess.Popen) -> None:
    try:
        proc.terminate()
        proc.wait(timeout=5)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()
    except OSError:
        pass


def _run_ffmpeg(cmd: list[str], cancel: CancelToken | None) -> tuple[int, str] | None:
    """
    Run cmd to completion and return (returncode, stderr), or None if cancel fired first.
    The token is checked every _CANCEL_POLL_SECONDS; a cancelled process is terminated.
    """
    proc = subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE, text=True)
    while True:
        if cancel is not None and cancel.is_cancelled:
            _stop_process(proc)
            return None
        try:
            _, stderr = proc.communicate(timeout=_CANCEL_POLL_SECONDS)
        except subprocess.TimeoutExpired:
            continue
        return proc.returncode, stderr or ""


class FFmpegAudioExtractor:
    """
    Runs FFmpeg to write the audio track to a temporary WAV, then loads its samples.

    Every failure mode (FFmpeg missing or not runnable, non-zero exit, empty output,
    unreadable WAV) is an expected degraded condition: it is logged and extract() returns
    None. A cancel token stops a running FFmpeg process, also returning None.
    """

    def __init__(self, ffmpeg_path: str = "ffmpeg") -> None:
        self._ffmpeg_path = ffmpeg_path

    def extract(self, path: str | Path, cancel: CancelToken | None = None) -> SampleSource | None:
        source = Path(path)
        with tempfile.TemporaryDirectory(prefix="avactivity-") as tmp:
            dest = Path(tmp) / f"{source.stem}.wav"
            cmd = ffmpeg_extract_cmd(self._ffmpeg_path, source, dest)
            try:
                result = _run_ffmpeg(cmd, cancel)
            except OSError as e:
                _log.warning(
                    "Could not run FFmpeg at %r (%s); audio activity will not be available.", self._ffmpeg_path, e
                )
                return None
            if result is None:
                _log.info("Audio extraction cancelled for %s", source)
                return None
            returncode, stderr = result
            if returncode != 0:
                _log.warning(
                    "FFmpeg audio extraction failed for %s (exit %s). Repro: %s\n%s",
                    source,
                    returncode,
                    _cmd_to_repro(cmd),
                    _stderr_tail(stderr),
                )
                return None
            if not _file_non_empty(dest):
                _log.warning("FFmpeg produced no audio for %s. Repro: %s", source, _cmd_to_repro(cmd))
                return None
            try:
                samples = SampleSource.from_wav(dest)
            except (wave.Error, ValueError, EOFError) as e:
                _log.warning("Could not read extracted audio for %s: %s", source, e)
                return None
        _log.debug("Extracted %d audio samples from %s", samples.num_samples, source)
        return samples


class NullAudioExtractor:
    """Extractor for callers that skip audio entirely; always reports no audio."""

    def extract(self, path: str | Path, cancel: CancelToken | None = None) -> SampleSource | None:
        return None
