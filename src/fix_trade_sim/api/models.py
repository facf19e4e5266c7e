"""Pydantic models for REST requests, responses and relay frames."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..domain.allocation.models import AllocationAccount, AllocationMethod
from ..domain.fix.tags import AssetClass, MsgType, OrderType, Side


class ApiError(BaseModel):
    """Error details for failed API requests."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        default=None, description="Additional error context"
    )


class ApiResponse(BaseModel):
    """Generic API response for all operations.

    This unified response structure is used for every endpoint so clients
    can read ``data`` the same way everywhere.
    """

    success: bool = Field(..., description="Whether the request succeeded")
    request_id: str = Field(..., description="Server-assigned request ID")
    data: Optional[Dict[str, Any]] = Field(
        default=None, description="Response payload"
    )
    error: Optional[ApiError] = Field(
        default=None, description="Error details if failed"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now, description="Server timestamp"
    )


# --- FIX toolbox ---


class EncodeRequest(BaseModel):
    """Frame a tag mapping as a wire string."""

    msg_type: MsgType = Field(..., description="Message-type code (tag 35)")
    tags: Dict[str, Any] = Field(
        ..., description="Business tags keyed by tag number, in wire order"
    )
    begin_string: Optional[str] = Field(
        default=None, description="Protocol version; configured default if None"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "msg_type": "F",
                "tags": {"11": "C-1", "41": "O-1", "55": "AAPL", "54": "1"},
            }
        }
    }


class DecodeRequest(BaseModel):
    """Decode a wire string. Pipe-delimited display form is accepted."""

    raw: str = Field(..., description="SOH- or pipe-delimited message")


class ValidateRequest(BaseModel):
    """Validate a tag mapping against a message type."""

    msg_type: str = Field(..., description="Declared message-type code")
    tags: Dict[str, Any] = Field(..., description="Tag mapping to check")


class DisplayRequest(BaseModel):
    """Convert between the SOH wire form and the pipe display form."""

    raw: str = Field(..., description="Message in either form")
    to_display: bool = Field(
        default=True, description="True for SOH -> pipe, False for the reverse"
    )


# --- Allocations ---


class AllocationAccountModel(BaseModel):
    """Target account for an allocation."""

    account: str = Field(..., description="Settlement account identifier")
    weight: Optional[float] = Field(default=None, description="ProRata weight")
    percent: Optional[float] = Field(default=None, description="Percent share")
    qty: Optional[float] = Field(
        default=None, description="Fixed quantity (FixedQty / AvgPrice)"
    )

    def to_domain(self) -> AllocationAccount:
        return AllocationAccount(
            account=self.account,
            weight=self.weight,
            percent=self.percent,
            qty=self.qty,
        )


class OrderSnapshotModel(BaseModel):
    """The order fields the allocation engine reads."""

    quantity: float = Field(..., gt=0, description="Order quantity")
    cum_qty: float = Field(..., ge=0, description="Filled quantity")
    avg_px: Optional[float] = Field(default=None, description="Average fill price")
    price: Optional[float] = Field(default=None, description="Limit price")
    symbol: str = Field(default="", description="Instrument symbol")
    side: Side = Field(default=Side.BUY)


class AllocationCalculateRequest(BaseModel):
    """Run the allocation engine on an order snapshot."""

    method: AllocationMethod
    order: OrderSnapshotModel
    accounts: List[AllocationAccountModel]

    model_config = {
        "json_schema_extra": {
            "example": {
                "method": "ProRata",
                "order": {"quantity": 100, "cum_qty": 100, "avg_px": 10.0},
                "accounts": [
                    {"account": "A", "weight": 1},
                    {"account": "B", "weight": 1},
                    {"account": "C", "weight": 1},
                ],
            }
        }
    }


class AllocationValidateRequest(BaseModel):
    """Run the allocation validator."""

    method: AllocationMethod
    accounts: List[AllocationAccountModel]
    total_qty: float = Field(..., ge=0, description="Filled quantity available")


# --- Relay frames ---


class RelayFrame(BaseModel):
    """Inbound WebSocket frame: ``{"type": ..., "data": {...}}``."""

    type: str = Field(..., description="Business event name, e.g. order.new")
    data: Dict[str, Any] = Field(default_factory=dict)


class NewOrderPayload(BaseModel):
    """``order.new``"""

    symbol: str = Field(..., min_length=1)
    side: Side
    quantity: float = Field(..., gt=0)
    order_type: OrderType
    price: Optional[float] = None
    asset_class: AssetClass = AssetClass.EQUITY
    security_type: Optional[str] = None
    currency_pair: Optional[str] = None
    maturity_month_year: Optional[str] = None
    strike_price: Optional[float] = None
    option_type: Optional[str] = Field(default=None, pattern="^[CP]$")
    underlying_symbol: Optional[str] = None


class OrderRefPayload(BaseModel):
    """``execution.reject``, ``order.cancel``, ``order.cancel.accept``"""

    order_id: str


class FillPayload(BaseModel):
    """``execution.fill``"""

    order_id: str
    fill_qty: float
    fill_px: float


class ReplacePayload(BaseModel):
    """``order.replace`` and ``order.replace.accept``"""

    order_id: str
    quantity: Optional[float] = None
    price: Optional[float] = None


class AllocationInstructionPayload(BaseModel):
    """``allocation.instruction``"""

    order_id: str
    method: AllocationMethod
    accounts: List[AllocationAccountModel]


class AllocationResponsePayload(BaseModel):
    """``allocation.response``"""

    alloc_id: str
    accept: bool


class AllocationConfirmPayload(BaseModel):
    """``allocation.confirm``"""

    alloc_id: str
