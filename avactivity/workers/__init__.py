from avactivity.workers.activity_session import ActivitySession

__all__ = ["ActivitySession"]
