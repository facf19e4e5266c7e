"""Order snapshots and execution arithmetic."""

from .fills import (
    apply_cancel_accept,
    apply_fill,
    apply_reject,
    apply_replace_accept,
    mark_pending,
)
from .models import Order, OrderUpdate

__all__ = [
    "Order",
    "OrderUpdate",
    "apply_cancel_accept",
    "apply_fill",
    "apply_reject",
    "apply_replace_accept",
    "mark_pending",
]
