"""REST and WebSocket API for the FIX trade simulator."""

from .main import app

__all__ = ["app"]
