"""Result type shared by the message and allocation validators."""

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation pass.

    Parameters
    ----------
    valid : bool
        True when no violations were found
    errors : List[str]
        Every violation found, in the order the checks ran

    Notes
    -----
    Validators collect all violations in one pass rather than stopping at
    the first, so the UI can show the full list at once. Validation
    failures are always returned this way, never raised.
    """

    valid: bool
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(valid=not errors, errors=list(errors))

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": list(self.errors)}
