"""Typer CLI: scan a video for audio/visual activity and list the active segments."""

import json
import logging
import signal
import threading
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from avactivity.audio.extractor import FFmpegAudioExtractor, NullAudioExtractor
from avactivity.core.config import get_config
from avactivity.core.logging import setup_logging
from avactivity.models.activity import ActivityState, Track
from avactivity.video.frame_source import FrameSourceError, VideoInfo, probe_video_info
from avactivity.workers.activity_session import ActivitySession

_log = logging.getLogger(__name__)

EXIT_CANCELLED = 130

app = typer.Typer(no_args_is_help=True)


def _install_signal_handlers(session: ActivitySession) -> dict[int, Any]:
    """Register SIGINT and SIGTERM to cancel the scan (main thread only). Returns the previous handlers."""
    if threading.current_thread() is not threading.main_thread():
        return {}

    def _handler(_signum: int, _frame: Any) -> None:
        session.cancel()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _handler)
    return previous


def _format_time(info: VideoInfo, index: int) -> str:
    seconds = info.frame_time(index)
    return "-" if seconds is None else f"{seconds:.2f}"


def _segment_rows(session: ActivitySession, tracks: list[Track]) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for track in tracks:
        for start, end in session.segments(track):
            rows.append(
                {
                    "track": track.value,
                    "start_frame": start,
                    "end_frame": end,
                    "start_ts": session.info.frame_time(start),
                    "end_ts": session.info.frame_time(end),
                }
            )
    return rows


@app.command()
def scan(
    video: Path = typer.Argument(..., help="Video file to scan"),
    track: Track | None = typer.Option(None, "--track", help="Only list segments for this track (video, audio, either)."),
    no_audio: bool = typer.Option(False, "--no-audio", help="Skip audio extraction; the audio strip is marked no_data."),
    as_json: bool = typer.Option(False, "--json", help="Output segments and strip summary as JSON."),
    config_path: Path | None = typer.Option(None, "--config", help="YAML config file (defaults to activity_config.yml)."),
) -> None:
    """Scan VIDEO and list the frame ranges that contain activity."""
    try:
        cfg = get_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    setup_logging(cfg.log_level)

    if not video.exists():
        typer.secho(f"Video not found: {video}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    try:
        info = probe_video_info(video)
    except (FrameSourceError, ValueError) as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    extractor = NullAudioExtractor() if no_audio else FFmpegAudioExtractor(cfg.ffmpeg_path)
    notices: list[str] = []
    session = ActivitySession(info, settings=cfg, audio_extractor=extractor, on_message=notices.append)
    previous_handlers = _install_signal_handlers(session)
    _log.info("Scanning %s (%d frames)", info.path, info.num_frames)
    try:
        with session:
            session.start()
            session.wait()
    except (FrameSourceError, ValueError, RuntimeError) as e:
        typer.secho(f"Activity scan failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    finally:
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)

    for notice in notices:
        typer.secho(notice, fg=typer.colors.YELLOW, err=True)

    tracks = [track] if track is not None else [Track.video, Track.audio]
    rows = _segment_rows(session, tracks)

    if as_json:
        payload = {
            "path": info.path,
            "num_frames": info.num_frames,
            "fps": info.fps,
            "duration_seconds": info.duration_seconds,
            "audio_sample_rate": session.audio_sample_rate,
            "has_audio": session.has_usable_audio(),
            "cancelled": session.cancelled,
            "summary": {
                name: {state.value: strip.count(state) for state in ActivityState}
                for name, strip in (("video", session.video_strip), ("audio", session.audio_strip))
            },
            "segments": rows,
        }
        typer.echo(json.dumps(payload, indent=2))
    elif not rows:
        typer.echo("No activity found.")
    else:
        table = Table(title=f"Activity segments ({info.num_frames} frames)")
        table.add_column("Track")
        table.add_column("Start frame", justify="right")
        table.add_column("End frame", justify="right")
        table.add_column("Start (s)", justify="right")
        table.add_column("End (s)", justify="right")
        for row in rows:
            table.add_row(
                row["track"],
                str(row["start_frame"]),
                str(row["end_frame"]),
                _format_time(info, row["start_frame"]),
                _format_time(info, row["end_frame"]),
            )
        console = Console()
        console.print(table)

    if session.cancelled:
        typer.secho("Scan cancelled; results are incomplete.", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(EXIT_CANCELLED)


@app.command("config")
def show_config(
    config_path: Path | None = typer.Option(None, "--config", help="YAML config file to load."),
) -> None:
    """Print the effective scanner configuration as JSON."""
    try:
        cfg = get_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(cfg.model_dump(), indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
