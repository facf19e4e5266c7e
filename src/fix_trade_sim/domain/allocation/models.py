"""Domain models for post-trade allocation.

This module contains the input and output shapes of the allocation
engine: the accounts a trader wants to split a fill across, and the
resolved per-account quantities and net money.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class AllocationMethod(str, Enum):
    """How a filled quantity is apportioned across accounts.

    Attributes
    ----------
    PRO_RATA : str
        Proportional to caller-supplied weights
    PERCENT : str
        Proportional to caller-supplied percentages
    FIXED_QTY : str
        Each account receives exactly the quantity given
    AVG_PRICE : str
        Same computation as FIXED_QTY, kept as a separate method for wire
        fidelity with average-price allocation of multi-fill blocks
    """

    PRO_RATA = "ProRata"
    PERCENT = "Percent"
    FIXED_QTY = "FixedQty"
    AVG_PRICE = "AvgPrice"


class AllocationStatus(str, Enum):
    """Lifecycle of an allocation instruction."""

    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    CONFIRMED = "Confirmed"


@dataclass(frozen=True)
class AllocationAccount:
    """A target account supplied by the caller.

    Parameters
    ----------
    account : str
        Settlement account identifier
    weight : Optional[float]
        Relative weight, used by PRO_RATA
    percent : Optional[float]
        Share in percent, used by PERCENT
    qty : Optional[float]
        Fixed quantity, used by FIXED_QTY and AVG_PRICE

    Notes
    -----
    Only the field relevant to the chosen method is read; a missing value
    counts as zero.
    """

    account: str
    weight: Optional[float] = None
    percent: Optional[float] = None
    qty: Optional[float] = None


@dataclass(frozen=True)
class AllocatedAccount:
    """Resolved allocation for one account.

    Parameters
    ----------
    account : str
        Settlement account identifier
    qty : float
        Allocated quantity
    net_money : float
        ``qty * avg_px``
    percent : Optional[float]
        Share of the fill in percent. Given back for PERCENT, computed
        for PRO_RATA, None for the fixed-quantity methods.
    """

    account: str
    qty: float
    net_money: float
    percent: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "account": self.account,
            "qty": self.qty,
            "percent": self.percent,
            "net_money": self.net_money,
        }


@dataclass(frozen=True)
class AllocationResult:
    """Complete output of one allocation calculation.

    Parameters
    ----------
    method : AllocationMethod
        Method used
    avg_px : float
        Price basis for net money
    accounts : Tuple[AllocatedAccount, ...]
        Per-account results in input order
    total_qty : float
        Sum of allocated quantities
    total_net_money : float
        Sum of per-account net money
    """

    method: AllocationMethod
    avg_px: float
    accounts: Tuple[AllocatedAccount, ...] = field(default_factory=tuple)
    total_qty: float = 0
    total_net_money: float = 0

    @property
    def quantities(self) -> List[float]:
        return [account.qty for account in self.accounts]

    def to_dict(self) -> dict:
        return {
            "method": self.method.value,
            "avg_px": self.avg_px,
            "accounts": [account.to_dict() for account in self.accounts],
            "total_qty": self.total_qty,
            "total_net_money": self.total_net_money,
        }


@dataclass(frozen=True)
class Allocation:
    """An allocation instruction tracked through its lifecycle.

    Parameters
    ----------
    alloc_id : str
        Allocation id (tag 70)
    order_id : str
        Internal id of the allocated order
    session_id : str
        Simulation session
    result : AllocationResult
        Engine output the instruction was built from
    status : AllocationStatus
        Pending until the broker responds, then Accepted or Rejected;
        Confirmed once the custodian confirms
    """

    alloc_id: str
    order_id: str
    session_id: str
    result: AllocationResult
    status: AllocationStatus = AllocationStatus.PENDING

    def to_dict(self) -> dict:
        data = {
            "alloc_id": self.alloc_id,
            "order_id": self.order_id,
            "session_id": self.session_id,
            "status": self.status.value,
        }
        data.update(self.result.to_dict())
        return data
