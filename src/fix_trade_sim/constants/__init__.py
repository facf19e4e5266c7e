"""Constants module for the FIX trade simulator.

This module contains all application constants including error codes and
error messages, to prevent string duplication and keep the validators,
the relay and the API consistent.
"""

from .errors import ErrorCodes, ErrorMessages

__all__ = ["ErrorCodes", "ErrorMessages"]
