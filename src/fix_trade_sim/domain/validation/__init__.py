"""Message and allocation validation."""

from .allocation_validator import validate_allocation
from .fix_validator import (
    REQUIRED_TAGS,
    FixMessageValidator,
    TagConstraint,
    validate_fix_message,
)
from .result import ValidationResult

__all__ = [
    "REQUIRED_TAGS",
    "FixMessageValidator",
    "TagConstraint",
    "ValidationResult",
    "validate_allocation",
    "validate_fix_message",
]
