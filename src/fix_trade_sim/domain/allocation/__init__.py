"""Post-trade allocation of filled orders across settlement accounts."""

from .engine import (
    AllocationEngine,
    AllocationStrategy,
    calculate_allocation,
)
from .models import (
    AllocatedAccount,
    Allocation,
    AllocationAccount,
    AllocationMethod,
    AllocationResult,
    AllocationStatus,
)

__all__ = [
    "AllocatedAccount",
    "Allocation",
    "AllocationAccount",
    "AllocationEngine",
    "AllocationMethod",
    "AllocationResult",
    "AllocationStatus",
    "AllocationStrategy",
    "calculate_allocation",
]
