"""Builders that turn business events into framed FIX messages.

Each builder takes a parameter dataclass for one event, lays out the tags
in wire order and hands them to ``codec.encode``. Builders pick wire codes
from the enums and stamp TransactTime when the caller leaves it out; they
do no cross-field validation. A strike without an option type, for
example, is built as given.

Notes
-----
Pass ``transact_time`` explicitly for deterministic output in tests.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from . import codec
from .message import FixMessage
from .tags import AssetClass, ExecType, FixTag, MsgType, OrderStatus, OrderType, Side

ALLOC_TRANS_TYPE_NEW = "0"
ALLOC_STATUS_ACCEPTED = "0"
ALLOC_STATUS_REJECTED = "1"
CONFIRM_TRANS_TYPE_NEW = "0"
CONFIRM_TYPE_CONFIRMATION = "1"
CONFIRM_STATUS_CONFIRMED = "1"


def _frame(
    msg_type: MsgType, tags: Dict[int, Any], begin_string: Optional[str]
) -> FixMessage:
    raw = codec.encode(msg_type, tags, begin_string or codec.BEGIN_STRING)
    return FixMessage(msg_type=msg_type, tags=codec.decode(raw), raw=raw)


@dataclass(frozen=True)
class NewOrderSingleParams:
    """Parameters of a trader's new order.

    Parameters
    ----------
    cl_ord_id : str
        Client order id (tag 11)
    symbol : str
        Instrument symbol (tag 55)
    side : Side
        Buy or Sell (tag 54)
    quantity : float
        Order quantity (tag 38)
    order_type : OrderType
        Order type (tag 40)
    price : Optional[float]
        Limit or stop price (tag 44). Ignored for market orders.
    transact_time : Optional[str]
        Preformatted TransactTime; current UTC time when None
    asset_class : AssetClass
        Decides which of the optional instrument tags are written
    security_type : Optional[str]
        SecurityType (tag 167), written for any asset class
    currency_pair : Optional[str]
        FX only; replaces the symbol in tag 55
    maturity_month_year : Optional[str]
        Futures only (tag 200)
    strike_price : Optional[float]
        Options only (tag 202)
    option_type : Optional[str]
        Options only, ``C`` or ``P`` (tag 201)
    underlying_symbol : Optional[str]
        Options only (tag 311)
    """

    cl_ord_id: str
    symbol: str
    side: Side
    quantity: float
    order_type: OrderType
    price: Optional[float] = None
    transact_time: Optional[str] = None
    asset_class: AssetClass = AssetClass.EQUITY
    security_type: Optional[str] = None
    currency_pair: Optional[str] = None
    maturity_month_year: Optional[str] = None
    strike_price: Optional[float] = None
    option_type: Optional[str] = None
    underlying_symbol: Optional[str] = None


def build_new_order_single(
    params: NewOrderSingleParams, begin_string: Optional[str] = None
) -> FixMessage:
    """Build a NewOrderSingle (35=D).

    Examples
    --------
    >>> msg = build_new_order_single(NewOrderSingleParams(
    ...     cl_ord_id="ORD-1", symbol="AAPL", side=Side.BUY, quantity=100,
    ...     order_type=OrderType.MARKET, price=150.0,
    ...     transact_time="20240101-12:00:00"))
    >>> msg.get(44) is None
    True
    """
    tags: Dict[int, Any] = {
        FixTag.CL_ORD_ID: params.cl_ord_id,
        FixTag.SYMBOL: params.symbol,
        FixTag.SIDE: params.side.fix_code,
        FixTag.ORDER_QTY: params.quantity,
        FixTag.ORD_TYPE: params.order_type.fix_code,
        FixTag.TRANSACT_TIME: params.transact_time or codec.format_transact_time(),
    }

    if params.price is not None and params.order_type.requires_price:
        tags[FixTag.PRICE] = params.price

    if params.security_type:
        tags[FixTag.SECURITY_TYPE] = params.security_type

    if params.asset_class is AssetClass.FX and params.currency_pair:
        tags[FixTag.SYMBOL] = params.currency_pair

    if params.asset_class is AssetClass.FUTURES and params.maturity_month_year:
        tags[FixTag.MATURITY_MONTH_YEAR] = params.maturity_month_year

    if params.asset_class is AssetClass.OPTIONS:
        if params.strike_price:
            tags[FixTag.STRIKE_PRICE] = params.strike_price
        if params.option_type:
            tags[FixTag.PUT_OR_CALL] = params.option_type
        if params.underlying_symbol:
            tags[FixTag.UNDERLYING_SYMBOL] = params.underlying_symbol

    return _frame(MsgType.NEW_ORDER_SINGLE, tags, begin_string)


@dataclass(frozen=True)
class ExecutionReportParams:
    """Parameters of a broker execution report.

    ``order_id`` defaults to the ClOrdID. ``quantity`` and ``price`` are
    only written for replace acknowledgements, where they carry the
    amended values.
    """

    cl_ord_id: str
    exec_id: str
    exec_type: ExecType
    order_status: OrderStatus
    symbol: str
    side: Side
    last_qty: float
    last_px: float
    cum_qty: float
    avg_px: float
    leaves_qty: float
    order_id: Optional[str] = None
    quantity: Optional[float] = None
    price: Optional[float] = None
    transact_time: Optional[str] = None


def build_execution_report(
    params: ExecutionReportParams, begin_string: Optional[str] = None
) -> FixMessage:
    """Build an ExecutionReport (35=8)."""
    tags: Dict[int, Any] = {
        FixTag.ORDER_ID: params.order_id or params.cl_ord_id,
        FixTag.CL_ORD_ID: params.cl_ord_id,
        FixTag.EXEC_ID: params.exec_id,
        FixTag.EXEC_TYPE: params.exec_type.fix_code,
        FixTag.ORD_STATUS: params.order_status.fix_code,
        FixTag.SYMBOL: params.symbol,
        FixTag.SIDE: params.side.fix_code,
        FixTag.LAST_QTY: params.last_qty,
        FixTag.LAST_PX: params.last_px,
        FixTag.CUM_QTY: params.cum_qty,
        FixTag.AVG_PX: params.avg_px,
        FixTag.LEAVES_QTY: params.leaves_qty,
        FixTag.TRANSACT_TIME: params.transact_time or codec.format_transact_time(),
    }
    if params.quantity is not None:
        tags[FixTag.ORDER_QTY] = params.quantity
    if params.price is not None:
        tags[FixTag.PRICE] = params.price
    return _frame(MsgType.EXECUTION_REPORT, tags, begin_string)


@dataclass(frozen=True)
class OrderCancelRequestParams:
    """Parameters of a trader's cancel request."""

    cl_ord_id: str
    orig_cl_ord_id: str
    symbol: str
    side: Side
    transact_time: Optional[str] = None


def build_order_cancel_request(
    params: OrderCancelRequestParams, begin_string: Optional[str] = None
) -> FixMessage:
    """Build an OrderCancelRequest (35=F)."""
    tags: Dict[int, Any] = {
        FixTag.CL_ORD_ID: params.cl_ord_id,
        FixTag.ORIG_CL_ORD_ID: params.orig_cl_ord_id,
        FixTag.SYMBOL: params.symbol,
        FixTag.SIDE: params.side.fix_code,
        FixTag.TRANSACT_TIME: params.transact_time or codec.format_transact_time(),
    }
    return _frame(MsgType.ORDER_CANCEL_REQUEST, tags, begin_string)


@dataclass(frozen=True)
class OrderCancelReplaceRequestParams:
    """Parameters of a trader's amend request."""

    cl_ord_id: str
    orig_cl_ord_id: str
    symbol: str
    side: Side
    quantity: float
    order_type: OrderType
    price: Optional[float] = None
    transact_time: Optional[str] = None


def build_order_cancel_replace_request(
    params: OrderCancelReplaceRequestParams, begin_string: Optional[str] = None
) -> FixMessage:
    """Build an OrderCancelReplaceRequest (35=G)."""
    tags: Dict[int, Any] = {
        FixTag.CL_ORD_ID: params.cl_ord_id,
        FixTag.ORIG_CL_ORD_ID: params.orig_cl_ord_id,
        FixTag.SYMBOL: params.symbol,
        FixTag.SIDE: params.side.fix_code,
        FixTag.ORDER_QTY: params.quantity,
        FixTag.ORD_TYPE: params.order_type.fix_code,
        FixTag.TRANSACT_TIME: params.transact_time or codec.format_transact_time(),
    }
    if params.price is not None and params.order_type.requires_price:
        tags[FixTag.PRICE] = params.price
    return _frame(MsgType.ORDER_CANCEL_REPLACE_REQUEST, tags, begin_string)


@dataclass(frozen=True)
class AllocationInstructionParams:
    """Parameters of a trader's allocation instruction.

    Parameters
    ----------
    alloc_id : str
        Allocation id (tag 70)
    symbol : str
        Instrument symbol (tag 55)
    side : Side
        Side of the allocated order (tag 54)
    avg_px : float
        Price basis (tag 6)
    no_allocs : int
        Number of target accounts (tag 78)
    quantity : float
        Total allocated quantity (tag 53)
    trade_date : Optional[str]
        ``YYYYMMDD``; today (UTC) when None
    transact_time : Optional[str]
        Preformatted TransactTime; current UTC time when None
    """

    alloc_id: str
    symbol: str
    side: Side
    avg_px: float
    no_allocs: int
    quantity: float
    trade_date: Optional[str] = None
    transact_time: Optional[str] = None


def build_allocation_instruction(
    params: AllocationInstructionParams, begin_string: Optional[str] = None
) -> FixMessage:
    """Build an AllocationInstruction (35=J).

    The per-account breakdown is not written as a repeating group; it
    travels alongside the message in the allocation record.
    """
    tags: Dict[int, Any] = {
        FixTag.ALLOC_ID: params.alloc_id,
        FixTag.ALLOC_TRANS_TYPE: ALLOC_TRANS_TYPE_NEW,
        FixTag.NO_ALLOCS: params.no_allocs,
        FixTag.SYMBOL: params.symbol,
        FixTag.SIDE: params.side.fix_code,
        FixTag.AVG_PX: params.avg_px,
        FixTag.TRADE_DATE: params.trade_date or codec.format_trade_date(),
        FixTag.QUANTITY: params.quantity,
        FixTag.TRANSACT_TIME: params.transact_time or codec.format_transact_time(),
    }
    return _frame(MsgType.ALLOCATION_INSTRUCTION, tags, begin_string)


@dataclass(frozen=True)
class AllocationReportParams:
    """Parameters of a broker's allocation response."""

    alloc_report_id: str
    accepted: bool
    avg_px: float
    alloc_id: Optional[str] = None


def build_allocation_report(
    params: AllocationReportParams, begin_string: Optional[str] = None
) -> FixMessage:
    """Build an AllocationReport (35=AS)."""
    tags: Dict[int, Any] = {
        FixTag.ALLOC_REPORT_ID: params.alloc_report_id,
        FixTag.ALLOC_STATUS: (
            ALLOC_STATUS_ACCEPTED if params.accepted else ALLOC_STATUS_REJECTED
        ),
        FixTag.AVG_PX: params.avg_px,
    }
    if params.alloc_id:
        tags[FixTag.ALLOC_ID] = params.alloc_id
    return _frame(MsgType.ALLOCATION_REPORT, tags, begin_string)


@dataclass(frozen=True)
class ConfirmationParams:
    """Parameters of a custodian confirmation."""

    confirm_id: str
    alloc_id: Optional[str] = None


def build_confirmation(
    params: ConfirmationParams, begin_string: Optional[str] = None
) -> FixMessage:
    """Build a Confirmation (35=AK)."""
    tags: Dict[int, Any] = {
        FixTag.CONFIRM_ID: params.confirm_id,
        FixTag.CONFIRM_TRANS_TYPE: CONFIRM_TRANS_TYPE_NEW,
        FixTag.CONFIRM_TYPE: CONFIRM_TYPE_CONFIRMATION,
        FixTag.CONFIRM_STATUS: CONFIRM_STATUS_CONFIRMED,
    }
    if params.alloc_id:
        tags[FixTag.ALLOC_ID] = params.alloc_id
    return _frame(MsgType.CONFIRMATION, tags, begin_string)


@dataclass(frozen=True)
class AllocationAckParams:
    """Parameters of an allocation acknowledgement."""

    alloc_id: str
    trade_date: Optional[str] = None
    accepted: Optional[bool] = None


def build_allocation_ack(
    params: AllocationAckParams, begin_string: Optional[str] = None
) -> FixMessage:
    """Build an AllocationAck (35=P).

    AllocStatus (87) is only written when ``accepted`` is set.
    """
    tags: Dict[int, Any] = {
        FixTag.ALLOC_ID: params.alloc_id,
        FixTag.TRADE_DATE: params.trade_date or codec.format_trade_date(),
    }
    if params.accepted is not None:
        tags[FixTag.ALLOC_STATUS] = (
            ALLOC_STATUS_ACCEPTED if params.accepted else ALLOC_STATUS_REJECTED
        )
    return _frame(MsgType.ALLOCATION_ACK, tags, begin_string)
