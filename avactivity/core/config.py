"""Scanner configuration (Pydantic v2). Load from activity_config.yml with optional env override."""

import math
import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, field_validator

DEFAULT_CONFIG_ENV_VAR = "AVACTIVITY_CONFIG"
DEFAULT_CONFIG_FILENAME = "activity_config.yml"
FFMPEG_PATH_ENV_VAR = "FFMPEG_PATH"

DEFAULT_WINDOW_DIVISOR = 50
DEFAULT_AUDIO_THRESHOLD_SCALE = 0.001
DEFAULT_VIDEO_DIFF_THRESHOLD = 30
DEFAULT_CANCEL_POLL_INTERVAL = 200


class Settings(BaseModel):
    """
    Scanner tunables loaded from YAML.

    window_divisor sets the coalescing run length (num_frames // window_divisor).
    audio_threshold_scale multiplies (peak - average) amplitude to get the loudness cutoff.
    video_diff_threshold is the per-channel absolute difference (0-255) above which two frames differ.
    cancel_poll_interval is how many frames a scanner processes between cancellation checks.

    When loading the default config, ffmpeg_path may be overridden by the FFMPEG_PATH
    environment variable (but not when an explicit config_path is provided).
    """

    model_config = {"extra": "ignore"}

    window_divisor: int = DEFAULT_WINDOW_DIVISOR
    audio_threshold_scale: float = DEFAULT_AUDIO_THRESHOLD_SCALE
    video_diff_threshold: int = DEFAULT_VIDEO_DIFF_THRESHOLD
    cancel_poll_interval: int = DEFAULT_CANCEL_POLL_INTERVAL
    ffmpeg_path: str = "ffmpeg"
    log_level: str = "INFO"

    @field_validator("window_divisor", "cancel_poll_interval")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("audio_threshold_scale")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("must be finite")
        return v

    @field_validator("video_diff_threshold")
    @classmethod
    def _channel_range(cls, v: int) -> int:
        if not 0 <= v <= 255:
            raise ValueError("must be within 0..255")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v: Any) -> str:
        return str(v).upper()


_config: Settings | None = None


class ConfigLoader:
    """
    Helper responsible for loading Settings from YAML and environment.

    - load_from_yaml(path, apply_env_override): read a YAML file and optionally apply env overrides.
    - load_default(): resolve the default config path from AVACTIVITY_CONFIG / activity_config.yml and
      apply FFMPEG_PATH override when present.
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def load_from_yaml(self, path: Path, apply_env_override: bool) -> Settings:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = yaml.safe_load(f)
        if not data:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")
        if apply_env_override and self._env.get(FFMPEG_PATH_ENV_VAR):
            data["ffmpeg_path"] = self._env[FFMPEG_PATH_ENV_VAR]
        return Settings.model_validate(data)

    def load_default(self) -> Settings:
        """Load the default Settings, using AVACTIVITY_CONFIG or activity_config.yml when present."""
        path_str = self._env.get(DEFAULT_CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILENAME
        path = Path(path_str)
        if path.exists():
            return self.load_from_yaml(path, apply_env_override=True)

        settings = Settings()
        if self._env.get(FFMPEG_PATH_ENV_VAR):
            settings = settings.model_copy(update={"ffmpeg_path": self._env[FFMPEG_PATH_ENV_VAR]})
        return settings


_loader = ConfigLoader()


def get_config(config_path: str | Path | None = None) -> Settings:
    """
    Return singleton config.

    - If config_path is given, load from it (without env overrides) and update the cache.
    - Otherwise, return the cached config if available, or load via ConfigLoader.load_default().
    """
    global _config
    if config_path is not None:
        _config = _loader.load_from_yaml(Path(config_path), apply_env_override=False)
        return _config
    if _config is not None:
        return _config
    _config = _loader.load_default()
    return _config


def reset_config() -> None:
    """Clear cached config (for tests)."""
    global _config
    _config = None
