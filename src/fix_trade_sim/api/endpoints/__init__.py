"""API endpoint modules."""

from . import allocations, fix, relay, sessions

__all__ = ["allocations", "fix", "relay", "sessions"]
