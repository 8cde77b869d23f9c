from avactivity.core.cancellation import CancelToken
from avactivity.core.config import Settings, get_config
from avactivity.core.logging import setup_logging

__all__ = ["CancelToken", "Settings", "get_config", "setup_logging"]
