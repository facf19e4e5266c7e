"""Tag-value codec for FIX wire strings.

This module converts between a tag mapping and the framed wire form::

    8=FIX.4.4|9=<len>|35=<type>|<tag>=<value>|...|10=<checksum>|

with SOH (``\\x01``) in place of the pipes on the real wire. The codec is
purely structural: it knows nothing about which tags a message type needs
(see ``validation.fix_validator``) or how business events map to tags
(see ``builders``).

Notes
-----
Tags are emitted in the caller's insertion order, never sorted. Consumers
must not assume numeric ordering in the wire string.

Decoding is deliberately lenient. Segments without ``=`` are skipped and a
missing or unknown tag 35 falls back to a default type, so hand-edited or
partially corrupted messages from the UI can still be inspected. Callers
that care should run the validator on the result.

TradingContext
--------------
BodyLength counts the bytes after the ``9=`` field up to and including the
SOH that precedes ``10=``. CheckSum is the byte sum of everything before
``10=`` modulo 256, rendered as three digits. Both are computed on UTF-8
bytes.

Examples
--------
>>> raw = encode(MsgType.ORDER_CANCEL_REQUEST, {"11": "C-1", "41": "O-1"})
>>> to_display_string(raw)
'8=FIX.4.4|9=19|35=F|11=C-1|41=O-1|10=127|'
>>> decode(raw)["41"]
'O-1'
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from .message import DISPLAY_DELIMITER, SOH, FixMessage
from .tags import FRAMING_TAGS, FixTag, MsgType

BEGIN_STRING = "FIX.4.4"
TRANSACT_TIME_FORMAT = "%Y%m%d-%H:%M:%S"
TRADE_DATE_FORMAT = "%Y%m%d"

TagKey = Union[int, str]


def format_value(value: Any) -> str:
    """Render a tag value in its wire display form.

    Parameters
    ----------
    value : Any
        Scalar tag value

    Returns
    -------
    str
        ``50.0`` becomes ``"50"``, ``True`` becomes ``"Y"``, enums with a
        ``fix_code`` render as that code.
    """
    if isinstance(value, str) and not isinstance(value, Enum):
        return value
    if isinstance(value, Enum):
        return getattr(value, "fix_code", None) or str(value.value)
    if isinstance(value, bool):
        return "Y" if value else "N"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, Decimal):
        return str(value)
    return str(value)


def calculate_checksum(text: str) -> str:
    """Return the three-digit FIX checksum of ``text``."""
    return f"{sum(text.encode('utf-8')) % 256:03d}"


def encode(
    msg_type: Union[MsgType, str],
    tags: Mapping[TagKey, Any],
    begin_string: str = BEGIN_STRING,
) -> str:
    """Frame a tag mapping as a FIX wire string.

    Parameters
    ----------
    msg_type : MsgType or str
        Message-type code placed in tag 35
    tags : Mapping[int or str, Any]
        Business tags in the order they should appear. Any 8, 9, 10 or 35
        entries are ignored since the codec writes those itself.
    begin_string : str
        Protocol version for tag 8

    Returns
    -------
    str
        Complete SOH-delimited message ending with the checksum field
    """
    code = msg_type.value if isinstance(msg_type, MsgType) else str(msg_type)

    parts = [f"{FixTag.MSG_TYPE}={code}"]
    for tag, value in tags.items():
        if str(tag) in FRAMING_TAGS:
            continue
        parts.append(f"{tag}={format_value(value)}")
    body = SOH.join(parts) + SOH

    body_length = len(body.encode("utf-8"))
    message = (
        f"{FixTag.BEGIN_STRING}={begin_string}{SOH}"
        f"{FixTag.BODY_LENGTH}={body_length}{SOH}"
        f"{body}"
    )
    return f"{message}{FixTag.CHECKSUM}={calculate_checksum(message)}{SOH}"


def decode(raw: str) -> Dict[str, str]:
    """Split a wire string into a ``{tag: value}`` mapping.

    Empty segments and segments without ``=`` are skipped. Values keep
    everything after the first ``=``. A repeated tag keeps its last value.
    """
    tags: Dict[str, str] = {}
    for segment in raw.split(SOH):
        if not segment:
            continue
        tag, sep, value = segment.partition("=")
        if not sep or not tag:
            continue
        tags[tag] = value
    return tags


def parse_message(
    raw: str, fallback: MsgType = MsgType.NEW_ORDER_SINGLE
) -> FixMessage:
    """Decode ``raw`` into a ``FixMessage``.

    The message type comes from tag 35. When the tag is missing or holds
    an unsupported code the ``fallback`` type is used instead of raising.
    The declared code is still available as ``message.get(35)``.
    """
    tags = decode(raw)
    msg_type = MsgType.from_code(tags.get(str(FixTag.MSG_TYPE), ""), fallback)
    return FixMessage(msg_type=msg_type, tags=tags, raw=raw)


def verify_checksum(raw: str) -> bool:
    """Check the trailing ``10=`` field against the bytes that precede it.

    Returns False for messages without a checksum trailer.
    """
    marker = f"{SOH}{FixTag.CHECKSUM}="
    index = raw.rfind(marker)
    if index == -1:
        return False
    body = raw[: index + 1]
    received = raw[index + len(marker):].rstrip(SOH)
    return received == calculate_checksum(body)


def to_display_string(raw: str) -> str:
    """Replace SOH delimiters with pipes for display."""
    return raw.replace(SOH, DISPLAY_DELIMITER)


def from_display_string(display: str) -> str:
    """Inverse of ``to_display_string``."""
    return display.replace(DISPLAY_DELIMITER, SOH)


def format_transact_time(moment: Optional[datetime] = None) -> str:
    """Format a UTC instant as ``YYYYMMDD-HH:MM:SS``.

    Naive datetimes are taken to be UTC already; aware ones are converted.
    """
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(TRANSACT_TIME_FORMAT)


def format_trade_date(moment: Optional[datetime] = None) -> str:
    """Format a UTC date as ``YYYYMMDD`` for TradeDate (tag 75)."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(TRADE_DATE_FORMAT)
