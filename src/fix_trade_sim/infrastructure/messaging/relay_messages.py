"""Relay message types and payload builders.

This module defines the frame types the session relay sends to connected
participants and the functions that build their payloads from domain
objects. Framing (sequence numbers, timestamps) is added by the
``ConnectionRegistry``; this module only shapes ``data``.

Notes
-----
Every FIX message generated in a session is relayed twice: once as the
business update (``order.updated``, ``allocation.created``, ...) and once
as ``message.new`` carrying the wire string, so the message log panel of
every participant stays in sync.

Examples
--------
>>> event = build_error("ORDER_NOT_FOUND", "Order not found")
>>> event.type.value
'error'
>>> event.data["code"]
'ORDER_NOT_FOUND'
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from ...domain.allocation.models import Allocation
from ...domain.fix.message import FixMessage
from ...domain.orders.models import Order
from ...domain.participants import ParticipantRole
from ...domain.validation.result import ValidationResult


class RelayMessageType(str, Enum):
    """Frame types sent to session participants.

    Attributes
    ----------
    PARTICIPANT_JOINED : str
        Someone connected to the session
    PARTICIPANT_LEFT : str
        Someone disconnected
    ORDER_CREATED : str
        Trader submitted a new order
    ORDER_UPDATED : str
        Order state changed after an execution report
    ORDER_CANCEL_PENDING : str
        Trader requested a cancel; awaiting the broker
    ORDER_REPLACE_PENDING : str
        Trader requested an amend; awaiting the broker
    EXECUTION_CREATED : str
        Broker produced an execution report
    ALLOCATION_CREATED : str
        Trader sent an allocation instruction
    ALLOCATION_UPDATED : str
        Broker responded or custodian confirmed
    MESSAGE_NEW : str
        A FIX message was added to the session log
    ERROR : str
        A request from this client failed
    """

    PARTICIPANT_JOINED = "participant.joined"
    PARTICIPANT_LEFT = "participant.left"
    ORDER_CREATED = "order.created"
    ORDER_UPDATED = "order.updated"
    ORDER_CANCEL_PENDING = "order.cancel.pending"
    ORDER_REPLACE_PENDING = "order.replace.pending"
    EXECUTION_CREATED = "execution.created"
    ALLOCATION_CREATED = "allocation.created"
    ALLOCATION_UPDATED = "allocation.updated"
    MESSAGE_NEW = "message.new"
    ERROR = "error"


@dataclass(frozen=True)
class RelayEvent:
    """A payload waiting to be framed and sent."""

    type: RelayMessageType
    data: Dict[str, Any] = field(default_factory=dict)


def build_participant_event(
    joined: bool,
    client_id: str,
    username: str,
    role: ParticipantRole,
    timestamp: Optional[datetime] = None,
) -> RelayEvent:
    """Build a participant joined or left event."""
    timestamp = timestamp or datetime.now(timezone.utc)
    return RelayEvent(
        type=(
            RelayMessageType.PARTICIPANT_JOINED
            if joined
            else RelayMessageType.PARTICIPANT_LEFT
        ),
        data={
            "client_id": client_id,
            "username": username,
            "role": role.value,
            "timestamp": timestamp.isoformat(),
        },
    )


def build_order_event(message_type: RelayMessageType, order: Order) -> RelayEvent:
    """Build an order lifecycle event carrying the full order snapshot.

    Parameters
    ----------
    message_type : RelayMessageType
        One of the ``ORDER_*`` types
    order : Order
        Snapshot after the change
    """
    return RelayEvent(type=message_type, data={"order": order.to_dict()})


def build_execution_event(
    order: Order, exec_id: str, message: FixMessage
) -> RelayEvent:
    """Build an execution event pairing the report with the order."""
    return RelayEvent(
        type=RelayMessageType.EXECUTION_CREATED,
        data={
            "exec_id": exec_id,
            "order": order.to_dict(),
            "message": message.to_dict(),
        },
    )


def build_allocation_event(
    message_type: RelayMessageType, allocation: Allocation
) -> RelayEvent:
    return RelayEvent(
        type=message_type, data={"allocation": allocation.to_dict()}
    )


def build_message_event(
    message_id: str,
    session_id: str,
    sender: ParticipantRole,
    message: FixMessage,
    validation: ValidationResult,
    timestamp: Optional[datetime] = None,
) -> RelayEvent:
    """Build a ``message.new`` event for the session message log.

    Parameters
    ----------
    message_id : str
        Log entry id
    session_id : str
        Session the message belongs to
    sender : ParticipantRole
        Desk that caused the message
    message : FixMessage
        The framed message
    validation : ValidationResult
        Validator outcome. Invalid messages are relayed anyway so the
        participants can see what went wrong.
    timestamp : Optional[datetime]
        Log time (defaults to now)
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    data = {
        "id": message_id,
        "session_id": session_id,
        "sender": sender.value,
        "timestamp": timestamp.isoformat(),
        "validation": validation.to_dict(),
    }
    data.update(message.to_dict())
    return RelayEvent(type=RelayMessageType.MESSAGE_NEW, data=data)


def build_error(code: str, message: str) -> RelayEvent:
    """Build an error event, sent only to the client that caused it."""
    return RelayEvent(
        type=RelayMessageType.ERROR, data={"code": code, "message": message}
    )
