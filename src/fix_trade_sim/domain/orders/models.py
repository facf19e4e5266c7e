"""Order domain model.

The order is a snapshot: fills, cancels and replaces never mutate it in
place. ``fills`` computes an ``OrderUpdate`` from the current snapshot and
``Order.apply`` returns the next snapshot. Sequencing concurrent events
against one order is the caller's job.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional

from ..fix.tags import ExecType, OrderStatus, OrderType, Side


@dataclass(frozen=True)
class Order:
    """
    A client order as tracked by the simulator.

    Parameters
    ----------
    cl_ord_id : str
        Client-assigned order id (tag 11), unique within a session
    symbol : str
        Instrument symbol (tag 55)
    side : Side
        Buy or Sell
    quantity : float
        Requested quantity (tag 38)
    order_type : OrderType
        Market, Limit, Stop or StopLimit
    price : Optional[float], default=None
        Limit or stop price. Always None for market orders.
    cum_qty : float, default=0
        Quantity filled so far (tag 14)
    avg_px : Optional[float], default=None
        Volume-weighted average fill price (tag 6); None until the first
        fill
    status : OrderStatus, default=OrderStatus.NEW
        Current lifecycle state
    order_id : str, optional
        Internal id. A UUID is generated when not given.
    session_id : str, default=""
        Simulation session the order belongs to
    created_by : str, default=""
        Role that created the order

    Notes
    -----
    ``leaves_qty`` is derived, so ``cum_qty + leaves_qty == quantity``
    holds for every snapshot. Execution reports for cancelled or rejected
    orders still put 0 on the wire in tag 151, since nothing remains
    working in the market.
    """

    cl_ord_id: str
    symbol: str
    side: Side
    quantity: float
    order_type: OrderType
    price: Optional[float] = None
    cum_qty: float = 0
    avg_px: Optional[float] = None
    status: OrderStatus = OrderStatus.NEW
    order_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    session_id: str = ""
    created_by: str = ""
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def __post_init__(self):
        if self.quantity <= 0:
            raise ValueError("Order quantity must be positive")
        if self.cum_qty < 0 or self.cum_qty > self.quantity:
            raise ValueError(
                f"Cumulative quantity {self.cum_qty} outside [0, {self.quantity}]"
            )
        if not self.order_type.requires_price and self.price is not None:
            object.__setattr__(self, "price", None)

    @property
    def leaves_qty(self) -> float:
        return self.quantity - self.cum_qty

    @property
    def is_open(self) -> bool:
        return not self.status.is_terminal

    def apply(self, update: "OrderUpdate") -> "Order":
        """Return the snapshot that results from ``update``."""
        return replace(
            self,
            status=update.status,
            cum_qty=update.cum_qty,
            avg_px=update.avg_px,
            quantity=update.quantity,
            price=update.price,
        )

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "cl_ord_id": self.cl_ord_id,
            "session_id": self.session_id,
            "symbol": self.symbol,
            "side": self.side.value,
            "quantity": self.quantity,
            "order_type": self.order_type.value,
            "price": self.price,
            "cum_qty": self.cum_qty,
            "leaves_qty": self.leaves_qty,
            "avg_px": self.avg_px,
            "status": self.status.value,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class OrderUpdate:
    """Result of one execution event against an order.

    Parameters
    ----------
    exec_type : ExecType
        Event classification for tag 150
    status : OrderStatus
        Resulting order state for tag 39
    quantity : float
        Order quantity after the event (changes only on replace)
    price : Optional[float]
        Order price after the event (changes only on replace)
    cum_qty : float
        Cumulative filled quantity after the event
    avg_px : Optional[float]
        Average fill price after the event
    leaves_qty : float
        Quantity reported in tag 151
    last_qty : float
        Quantity of this event (tag 32)
    last_px : float
        Price of this event (tag 31)
    """

    exec_type: ExecType
    status: OrderStatus
    quantity: float
    price: Optional[float]
    cum_qty: float
    avg_px: Optional[float]
    leaves_qty: float
    last_qty: float = 0
    last_px: float = 0
