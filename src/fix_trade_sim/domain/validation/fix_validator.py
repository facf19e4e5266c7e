"""FIX message validation for the trade simulator.

This module decides whether a tag mapping is well formed for a declared
message type. Validation is split into small constraint objects, each of
which inspects the tags and reports zero or more violations. The
validator runs every constraint and collects all violations, so one pass
can report a missing tag and an invalid side together.

Notes
-----
Validation is pure and total: it never mutates the mapping and never
raises. Values that cannot be parsed as numbers fail the quantity and
price checks rather than being coerced.
"""

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ...constants.errors import ErrorMessages
from ..fix.tags import (
    PRICE_TAGS,
    QUANTITY_TAGS,
    VALID_ORD_TYPE_VALUES,
    VALID_SIDE_VALUES,
    FixTag,
    MsgType,
)
from .result import ValidationResult

REQUIRED_TAGS: Dict[MsgType, List[int]] = {
    MsgType.NEW_ORDER_SINGLE: [11, 55, 54, 38, 40, 60],
    MsgType.EXECUTION_REPORT: [11, 17, 150, 39, 55, 54, 32, 31, 151, 14, 6],
    MsgType.ORDER_CANCEL_REQUEST: [11, 41, 55, 54],
    MsgType.ORDER_CANCEL_REPLACE_REQUEST: [11, 41, 55, 54, 38],
    MsgType.ALLOCATION_INSTRUCTION: [70, 71, 78, 55, 54, 6, 75],
    MsgType.ALLOCATION_REPORT: [755, 87, 6],
    MsgType.CONFIRMATION: [664, 666, 773, 665],
    MsgType.ALLOCATION_ACK: [70, 75],
}


def _parse_number(value: Any) -> Optional[float]:
    """Parse a tag value as a finite number, or return None."""
    if isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


class TagConstraint(ABC):
    """Base class for a single message check."""

    @abstractmethod
    def check(
        self, msg_type: Optional[MsgType], tags: Mapping[str, Any]
    ) -> List[str]:
        """Return the violations found in ``tags``.

        Parameters
        ----------
        msg_type : Optional[MsgType]
            Declared message type, or None for an unsupported code
        tags : Mapping[str, Any]
            Tag mapping with string keys

        Returns
        -------
        List[str]
            Error messages, empty when the constraint holds
        """
        pass


class RequiredTagsConstraint(TagConstraint):
    """Every tag in the type's required table must be present."""

    def __init__(self, required: Optional[Dict[MsgType, List[int]]] = None):
        self.required = required or REQUIRED_TAGS

    def check(self, msg_type, tags):
        if msg_type is None:
            return []
        return [
            ErrorMessages.missing_tag(str(tag))
            for tag in self.required.get(msg_type, [])
            if str(tag) not in tags
        ]


class EnumeratedValueConstraint(TagConstraint):
    """A tag, when present, must hold one of an allowed set of values."""

    def __init__(self, tag: int, allowed: frozenset, message: str):
        self.tag = str(tag)
        self.allowed = allowed
        self.message = message

    def check(self, msg_type, tags):
        if self.tag not in tags or tags[self.tag] is None:
            return []
        value = tags[self.tag]
        if isinstance(value, Enum):
            value = value.value
        if str(value) in self.allowed:
            return []
        return [self.message]


class NonNegativeQuantityConstraint(TagConstraint):
    """Quantity tags must parse as numbers that are not negative."""

    def __init__(self, tags: Sequence[str] = QUANTITY_TAGS):
        self.tags = tags

    def check(self, msg_type, tags):
        errors = []
        for tag in self.tags:
            if tag not in tags or tags[tag] is None:
                continue
            number = _parse_number(tags[tag])
            if number is None or number < 0:
                errors.append(ErrorMessages.invalid_quantity(tag))
        return errors


class PositivePriceConstraint(TagConstraint):
    """Price tags must parse as numbers strictly greater than zero."""

    def __init__(self, tags: Sequence[str] = PRICE_TAGS):
        self.tags = tags

    def check(self, msg_type, tags):
        errors = []
        for tag in self.tags:
            if tag not in tags or tags[tag] is None:
                continue
            number = _parse_number(tags[tag])
            if number is None or number <= 0:
                errors.append(ErrorMessages.invalid_price(tag))
        return errors


def default_constraints() -> List[TagConstraint]:
    """Constraints applied to every message, in reporting order."""
    return [
        RequiredTagsConstraint(),
        EnumeratedValueConstraint(
            FixTag.SIDE, VALID_SIDE_VALUES, ErrorMessages.INVALID_SIDE
        ),
        EnumeratedValueConstraint(
            FixTag.ORD_TYPE, VALID_ORD_TYPE_VALUES, ErrorMessages.INVALID_ORD_TYPE
        ),
        NonNegativeQuantityConstraint(),
        PositivePriceConstraint(),
    ]


class FixMessageValidator:
    """Runs a list of tag constraints against a message.

    Parameters
    ----------
    constraints : Optional[List[TagConstraint]]
        Custom constraint list. If None, uses ``default_constraints()``.

    Notes
    -----
    Required tags are checked first, then the value checks run whether or
    not the required tags were present. An unsupported message-type code
    has no required tags but still gets the value checks.

    Examples
    --------
    >>> validator = FixMessageValidator()
    >>> result = validator.validate("D", {"11": "A", "54": "9"})
    >>> result.valid
    False
    >>> "Invalid Side value (tag 54)" in result.errors
    True
    """

    def __init__(self, constraints: Optional[List[TagConstraint]] = None):
        self.constraints = constraints or default_constraints()

    def validate(
        self,
        msg_type: Union[MsgType, str],
        tags: Mapping[Union[int, str], Any],
    ) -> ValidationResult:
        """Validate ``tags`` for ``msg_type``.

        Parameters
        ----------
        msg_type : MsgType or str
            Declared type, as an enum or its wire code
        tags : Mapping[int or str, Any]
            Tag mapping; integer keys are treated like their string form

        Returns
        -------
        ValidationResult
            ``valid`` is True exactly when ``errors`` is empty
        """
        normalized = {str(tag): value for tag, value in tags.items()}
        resolved = _resolve_type(msg_type)

        errors: List[str] = []
        for constraint in self.constraints:
            errors.extend(constraint.check(resolved, normalized))
        return ValidationResult.from_errors(errors)


def _resolve_type(msg_type: Union[MsgType, str]) -> Optional[MsgType]:
    if isinstance(msg_type, MsgType):
        return msg_type
    try:
        return MsgType(str(msg_type))
    except ValueError:
        return None


_default_validator = FixMessageValidator()


def validate_fix_message(
    msg_type: Union[MsgType, str], tags: Mapping[Union[int, str], Any]
) -> ValidationResult:
    """Validate ``tags`` with the default constraint set."""
    return _default_validator.validate(msg_type, tags)
