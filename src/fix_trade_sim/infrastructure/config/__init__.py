"""Infrastructure configuration module."""

from .loader import ConfigLoader
from .models import AllocationConfig, FixConfig, LoggingConfig, ServerConfig

__all__ = [
    "AllocationConfig",
    "ConfigLoader",
    "FixConfig",
    "LoggingConfig",
    "ServerConfig",
]
