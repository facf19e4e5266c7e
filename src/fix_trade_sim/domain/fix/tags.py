"""FIX tag numbers and enumerated wire codes.

This module is the single place where the simulator maps its business
vocabulary (Buy, Limit, Filled, ...) onto FIX 4.4 wire codes. Everything
above the codec works with the enums defined here; the raw code strings
only appear when a message is framed.

Notes
-----
Only the tags used by the eight supported message types are listed.
The enums subclass ``str`` so they compare equal to their business
names and serialize cleanly through pydantic and JSON.

TradingContext
--------------
FIX uses single-character codes for most enumerations. The simulator
keeps the readable names ("Buy", "StopLimit") as enum values because
those are what traders, brokers and custodians see in the UI, while
``fix_code`` gives the value that goes on the wire.
"""

from enum import Enum


class FixTag:
    """Tag numbers used by the supported message types."""

    # --- Standard header / trailer ---
    BEGIN_STRING = 8
    BODY_LENGTH = 9
    MSG_TYPE = 35
    CHECKSUM = 10

    # --- Orders ---
    CL_ORD_ID = 11
    ORIG_CL_ORD_ID = 41
    ORDER_ID = 37
    SYMBOL = 55
    SIDE = 54
    ORDER_QTY = 38
    ORD_TYPE = 40
    PRICE = 44
    TRANSACT_TIME = 60
    SECURITY_TYPE = 167
    MATURITY_MONTH_YEAR = 200
    PUT_OR_CALL = 201
    STRIKE_PRICE = 202
    UNDERLYING_SYMBOL = 311

    # --- Execution reports ---
    EXEC_ID = 17
    EXEC_TYPE = 150
    ORD_STATUS = 39
    LAST_QTY = 32
    LAST_PX = 31
    CUM_QTY = 14
    AVG_PX = 6
    LEAVES_QTY = 151

    # --- Allocations ---
    ALLOC_ID = 70
    ALLOC_TRANS_TYPE = 71
    NO_ALLOCS = 78
    ALLOC_QTY = 80
    QUANTITY = 53
    TRADE_DATE = 75
    ALLOC_STATUS = 87
    ALLOC_REPORT_ID = 755

    # --- Confirmations ---
    CONFIRM_ID = 664
    CONFIRM_STATUS = 665
    CONFIRM_TRANS_TYPE = 666
    CONFIRM_TYPE = 773


FRAMING_TAGS = frozenset(
    {
        str(FixTag.BEGIN_STRING),
        str(FixTag.BODY_LENGTH),
        str(FixTag.MSG_TYPE),
        str(FixTag.CHECKSUM),
    }
)


class MsgType(str, Enum):
    """Message-type codes carried in tag 35.

    Attributes
    ----------
    NEW_ORDER_SINGLE : str
        ``D`` - trader submits an order
    EXECUTION_REPORT : str
        ``8`` - broker reports a fill, reject, cancel or replace
    ORDER_CANCEL_REQUEST : str
        ``F`` - trader asks to cancel an open order
    ORDER_CANCEL_REPLACE_REQUEST : str
        ``G`` - trader asks to amend quantity or price
    ALLOCATION_INSTRUCTION : str
        ``J`` - trader instructs how to split a fill across accounts
    ALLOCATION_REPORT : str
        ``AS`` - broker accepts or rejects the allocation
    CONFIRMATION : str
        ``AK`` - custodian confirms settlement details
    ALLOCATION_ACK : str
        ``P`` - acknowledgement of an allocation instruction
    """

    NEW_ORDER_SINGLE = "D"
    EXECUTION_REPORT = "8"
    ORDER_CANCEL_REQUEST = "F"
    ORDER_CANCEL_REPLACE_REQUEST = "G"
    ALLOCATION_INSTRUCTION = "J"
    ALLOCATION_REPORT = "AS"
    CONFIRMATION = "AK"
    ALLOCATION_ACK = "P"

    @property
    def display_name(self) -> str:
        """Return the FIX message name, e.g. ``NewOrderSingle``."""
        return _MSG_TYPE_NAMES[self]

    @classmethod
    def from_code(cls, code: str, default: "MsgType") -> "MsgType":
        """Look up a type by its wire code, falling back to ``default``."""
        try:
            return cls(code)
        except ValueError:
            return default


_MSG_TYPE_NAMES = {
    MsgType.NEW_ORDER_SINGLE: "NewOrderSingle",
    MsgType.EXECUTION_REPORT: "ExecutionReport",
    MsgType.ORDER_CANCEL_REQUEST: "OrderCancelRequest",
    MsgType.ORDER_CANCEL_REPLACE_REQUEST: "OrderCancelReplaceRequest",
    MsgType.ALLOCATION_INSTRUCTION: "AllocationInstruction",
    MsgType.ALLOCATION_REPORT: "AllocationReport",
    MsgType.CONFIRMATION: "Confirmation",
    MsgType.ALLOCATION_ACK: "AllocationAck",
}


class Side(str, Enum):
    """Order side (tag 54)."""

    BUY = "Buy"
    SELL = "Sell"

    @property
    def fix_code(self) -> str:
        return "1" if self is Side.BUY else "2"


class OrderType(str, Enum):
    """Order type (tag 40).

    Market orders never carry a price tag; the other three always do.
    """

    MARKET = "Market"
    LIMIT = "Limit"
    STOP = "Stop"
    STOP_LIMIT = "StopLimit"

    @property
    def fix_code(self) -> str:
        return _ORDER_TYPE_CODES[self]

    @property
    def requires_price(self) -> bool:
        return self is not OrderType.MARKET


_ORDER_TYPE_CODES = {
    OrderType.MARKET: "1",
    OrderType.LIMIT: "2",
    OrderType.STOP: "3",
    OrderType.STOP_LIMIT: "4",
}


class OrderStatus(str, Enum):
    """Order lifecycle state (tag 39)."""

    NEW = "New"
    PARTIALLY_FILLED = "PartiallyFilled"
    FILLED = "Filled"
    CANCELED = "Canceled"
    REJECTED = "Rejected"
    PENDING_CANCEL = "PendingCancel"
    PENDING_REPLACE = "PendingReplace"

    @property
    def fix_code(self) -> str:
        return _ORDER_STATUS_CODES[self]

    @property
    def is_terminal(self) -> bool:
        return self in (
            OrderStatus.FILLED,
            OrderStatus.CANCELED,
            OrderStatus.REJECTED,
        )


_ORDER_STATUS_CODES = {
    OrderStatus.NEW: "0",
    OrderStatus.PARTIALLY_FILLED: "1",
    OrderStatus.FILLED: "2",
    OrderStatus.CANCELED: "4",
    OrderStatus.PENDING_CANCEL: "6",
    OrderStatus.REJECTED: "8",
    OrderStatus.PENDING_REPLACE: "E",
}


class ExecType(str, Enum):
    """Execution event classification (tag 150)."""

    NEW = "New"
    PARTIAL_FILL = "PartialFill"
    FILL = "Fill"
    CANCELED = "Canceled"
    REPLACED = "Replaced"
    REJECTED = "Rejected"
    TRADE = "Trade"
    ORDER_STATUS = "OrderStatus"

    @property
    def fix_code(self) -> str:
        return _EXEC_TYPE_CODES[self]


_EXEC_TYPE_CODES = {
    ExecType.NEW: "0",
    ExecType.PARTIAL_FILL: "1",
    ExecType.FILL: "2",
    ExecType.CANCELED: "4",
    ExecType.REPLACED: "5",
    ExecType.REJECTED: "8",
    ExecType.TRADE: "F",
    ExecType.ORDER_STATUS: "I",
}


class AssetClass(str, Enum):
    """Asset class of a NewOrderSingle; drives the extra tags it carries."""

    EQUITY = "Equity"
    FX = "FX"
    FUTURES = "Futures"
    OPTIONS = "Options"


# Accepted by the validator in either numeric or symbolic form
VALID_SIDE_VALUES = frozenset({"1", "2", "Buy", "Sell"})
VALID_ORD_TYPE_VALUES = frozenset(
    {"1", "2", "3", "4", "Market", "Limit", "Stop", "StopLimit"}
)

QUANTITY_TAGS = ("38", "32", "80", "14", "151")
PRICE_TAGS = ("44", "31", "6")
