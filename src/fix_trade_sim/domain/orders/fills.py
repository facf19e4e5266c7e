"""Execution arithmetic for order snapshots.

Each function takes the current ``Order`` and the event parameters and
returns an ``OrderUpdate``; none of them touch shared state. The relay
applies the update and broadcasts the execution report.

TradingContext
--------------
Average price is volume weighted across fills:

$$\\text{avgPx}_{n} = \\frac{\\text{cumQty}_{n-1} \\cdot \\text{avgPx}_{n-1}
+ \\text{lastQty} \\cdot \\text{lastPx}}{\\text{cumQty}_{n}}$$

Cancelled and rejected orders report LeavesQty 0 because nothing is left
working in the market, even though the order snapshot keeps
``leaves_qty = quantity - cum_qty``.
"""

from dataclasses import replace
from typing import Optional

from ..fix.tags import ExecType, OrderStatus
from .models import Order, OrderUpdate


def _require_open(order: Order, action: str):
    if not order.is_open:
        raise ValueError(
            f"Cannot {action} order {order.cl_ord_id} in status "
            f"{order.status.value}"
        )


def apply_fill(order: Order, fill_qty: float, fill_px: float) -> OrderUpdate:
    """Compute the effect of a (partial) fill.

    Parameters
    ----------
    order : Order
        Current order snapshot
    fill_qty : float
        Executed quantity, positive and at most ``order.leaves_qty``
    fill_px : float
        Execution price, positive

    Returns
    -------
    OrderUpdate
        Fill or PartialFill update with the new cumulative quantity and
        volume-weighted average price

    Raises
    ------
    ValueError
        If the order is closed, or the quantity or price is out of range
    """
    _require_open(order, "fill")
    if fill_qty <= 0:
        raise ValueError("Fill quantity must be positive")
    if fill_px <= 0:
        raise ValueError("Fill price must be positive")
    if fill_qty > order.leaves_qty:
        raise ValueError(
            f"Fill quantity {fill_qty} exceeds leaves quantity "
            f"{order.leaves_qty}"
        )

    cum_qty = order.cum_qty + fill_qty
    if order.cum_qty == 0:
        avg_px = fill_px
    else:
        avg_px = (
            order.cum_qty * (order.avg_px or 0) + fill_qty * fill_px
        ) / cum_qty

    is_filled = cum_qty >= order.quantity
    return OrderUpdate(
        exec_type=ExecType.FILL if is_filled else ExecType.PARTIAL_FILL,
        status=OrderStatus.FILLED if is_filled else OrderStatus.PARTIALLY_FILLED,
        quantity=order.quantity,
        price=order.price,
        cum_qty=cum_qty,
        avg_px=avg_px,
        leaves_qty=order.quantity - cum_qty,
        last_qty=fill_qty,
        last_px=fill_px,
    )


def apply_reject(order: Order) -> OrderUpdate:
    """Broker rejects the order; fills so far are kept."""
    _require_open(order, "reject")
    return OrderUpdate(
        exec_type=ExecType.REJECTED,
        status=OrderStatus.REJECTED,
        quantity=order.quantity,
        price=order.price,
        cum_qty=order.cum_qty,
        avg_px=order.avg_px,
        leaves_qty=0,
    )


def apply_cancel_accept(order: Order) -> OrderUpdate:
    """Broker accepts a cancel request."""
    _require_open(order, "cancel")
    return OrderUpdate(
        exec_type=ExecType.CANCELED,
        status=OrderStatus.CANCELED,
        quantity=order.quantity,
        price=order.price,
        cum_qty=order.cum_qty,
        avg_px=order.avg_px,
        leaves_qty=0,
    )


def apply_replace_accept(
    order: Order, quantity: float, price: Optional[float] = None
) -> OrderUpdate:
    """Broker accepts a cancel/replace request.

    The order keeps its fills. When ``price`` is None the existing price
    stays. A new quantity already covered by the fills completes the order.

    Raises
    ------
    ValueError
        If the order is closed or ``quantity`` is below the filled quantity
    """
    _require_open(order, "replace")
    if quantity <= 0:
        raise ValueError("Order quantity must be positive")
    if quantity < order.cum_qty:
        raise ValueError(
            f"Replace quantity {quantity} is below filled quantity "
            f"{order.cum_qty}"
        )

    new_price = price if price is not None else order.price
    if order.cum_qty == 0:
        status = OrderStatus.NEW
    elif order.cum_qty >= quantity:
        status = OrderStatus.FILLED
    else:
        status = OrderStatus.PARTIALLY_FILLED

    return OrderUpdate(
        exec_type=ExecType.REPLACED,
        status=status,
        quantity=quantity,
        price=new_price,
        cum_qty=order.cum_qty,
        avg_px=order.avg_px,
        leaves_qty=quantity - order.cum_qty,
        last_px=new_price or 0,
    )


def mark_pending(order: Order, status: OrderStatus) -> Order:
    """Move an open order into PendingCancel or PendingReplace."""
    if status not in (OrderStatus.PENDING_CANCEL, OrderStatus.PENDING_REPLACE):
        raise ValueError(f"Not a pending status: {status.value}")
    _require_open(order, "amend")
    return replace(order, status=status)
