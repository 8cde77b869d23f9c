"""Per-frame audio and video activity detection for long recordings."""
