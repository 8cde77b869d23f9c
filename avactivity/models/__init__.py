"""Activity strip model and state enums."""

from avactivity.models.activity import ActivityState, ActivityStrip, StripWriteError, Track

__all__ = ["ActivityState", "ActivityStrip", "StripWriteError", "Track"]
