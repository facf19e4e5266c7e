"""
FIX protocol module for the trade simulator.

This module contains the tag tables, the wire codec, the immutable message
envelope and the builders that turn business events into messages.
"""

from .builders import (
    AllocationAckParams,
    AllocationInstructionParams,
    AllocationReportParams,
    ConfirmationParams,
    ExecutionReportParams,
    NewOrderSingleParams,
    OrderCancelReplaceRequestParams,
    OrderCancelRequestParams,
    build_allocation_ack,
    build_allocation_instruction,
    build_allocation_report,
    build_confirmation,
    build_execution_report,
    build_new_order_single,
    build_order_cancel_replace_request,
    build_order_cancel_request,
)
from .codec import (
    calculate_checksum,
    decode,
    encode,
    from_display_string,
    parse_message,
    to_display_string,
    verify_checksum,
)
from .message import FixMessage
from .tags import (
    AssetClass,
    ExecType,
    FixTag,
    MsgType,
    OrderStatus,
    OrderType,
    Side,
)

__all__ = [
    "AllocationAckParams",
    "AllocationInstructionParams",
    "AllocationReportParams",
    "AssetClass",
    "ConfirmationParams",
    "ExecType",
    "ExecutionReportParams",
    "FixMessage",
    "FixTag",
    "MsgType",
    "NewOrderSingleParams",
    "OrderCancelReplaceRequestParams",
    "OrderCancelRequestParams",
    "OrderStatus",
    "OrderType",
    "Side",
    "build_allocation_ack",
    "build_allocation_instruction",
    "build_allocation_report",
    "build_confirmation",
    "build_execution_report",
    "build_new_order_single",
    "build_order_cancel_replace_request",
    "build_order_cancel_request",
    "calculate_checksum",
    "decode",
    "encode",
    "from_display_string",
    "parse_message",
    "to_display_string",
    "verify_checksum",
]
