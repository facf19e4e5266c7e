"""Immutable FIX message envelope."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from .tags import MsgType

DISPLAY_DELIMITER = "|"
SOH = "\x01"


@dataclass(frozen=True)
class FixMessage:
    """A framed FIX message produced for one business event.

    Parameters
    ----------
    msg_type : MsgType
        Message-type code (tag 35)
    tags : Mapping[str, str]
        Every tag on the wire keyed by tag-number string, including the
        framing tags 8, 9, 35 and 10. Stored read-only.
    raw : str
        The SOH-delimited wire string

    Notes
    -----
    Messages are created once by a builder (or by ``parse_message``) and
    never mutated afterwards; they are persisted verbatim for replay and
    export. ``tags`` is wrapped in a ``MappingProxyType`` so callers cannot
    drift the mapping away from ``raw``.
    """

    msg_type: MsgType
    tags: Mapping[str, str]
    raw: str = field(repr=False)

    def __post_init__(self):
        if not isinstance(self.tags, MappingProxyType):
            object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))

    def get(self, tag: int, default: Optional[str] = None) -> Optional[str]:
        """Return the value of ``tag`` or ``default`` when absent."""
        return self.tags.get(str(tag), default)

    @property
    def display(self) -> str:
        """Pipe-delimited form for logs and the UI."""
        return self.raw.replace(SOH, DISPLAY_DELIMITER)

    def to_dict(self) -> dict:
        """Plain representation used by the relay and the REST API."""
        return {
            "msg_type": self.msg_type.value,
            "msg_name": self.msg_type.display_name,
            "tags": dict(self.tags),
            "raw": self.raw,
            "display": self.display,
        }
