"""Allocation calculation engine.

This module splits a filled order's quantity and proceeds across
settlement accounts. Each allocation method is a strategy class; the
engine looks the strategy up by ``AllocationMethod`` and sums the
per-account results.

Notes
-----
The engine never validates its input (see ``validate_allocation``) and
never renormalizes: percentages that do not sum to 100 are applied as
given, with the last account absorbing the difference.
"""

import math
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Union

from ..orders.models import Order
from .models import (
    AllocatedAccount,
    AllocationAccount,
    AllocationMethod,
    AllocationResult,
)


class AllocationStrategy(ABC):
    """Base class for allocation method implementations."""

    @abstractmethod
    def allocate(
        self,
        accounts: Sequence[AllocationAccount],
        total_qty: float,
        avg_px: float,
    ) -> List[AllocatedAccount]:
        """Resolve per-account quantities.

        Parameters
        ----------
        accounts : Sequence[AllocationAccount]
            Target accounts in caller order
        total_qty : float
            Filled quantity of the order
        avg_px : float
            Price basis for net money

        Returns
        -------
        List[AllocatedAccount]
            One result per input account, same order
        """
        pass


def _remainder_to_last(
    accounts: Sequence[AllocationAccount],
    total_qty: float,
    shares: Sequence[float],
    denominator: float,
) -> List[float]:
    """Floor each share of ``total_qty``; the last account takes the rest.

    The remainder always goes to the last account in input order, so the
    allocated quantities sum to ``total_qty`` exactly.
    """
    quantities: List[float] = []
    allocated = 0
    last = len(accounts) - 1
    for index, share in enumerate(shares):
        if index == last:
            qty = total_qty - allocated
        else:
            qty = math.floor(total_qty * share / denominator)
        allocated += qty
        quantities.append(qty)
    return quantities


class ProRataStrategy(AllocationStrategy):
    """Allocate proportionally to weights.

    Accounts with all-zero weights receive nothing rather than raising a
    division error.
    """

    def allocate(self, accounts, total_qty, avg_px):
        weights = [account.weight or 0 for account in accounts]
        total_weight = sum(weights)

        if total_weight == 0:
            return [
                AllocatedAccount(
                    account=account.account, qty=0, net_money=0, percent=0.0
                )
                for account in accounts
            ]

        quantities = _remainder_to_last(
            accounts, total_qty, weights, total_weight
        )
        return [
            AllocatedAccount(
                account=account.account,
                qty=qty,
                net_money=qty * avg_px,
                percent=(qty / total_qty * 100) if total_qty else 0.0,
            )
            for account, qty in zip(accounts, quantities)
        ]


class PercentStrategy(AllocationStrategy):
    """Allocate by percentage of the filled quantity."""

    def allocate(self, accounts, total_qty, avg_px):
        percents = [account.percent or 0 for account in accounts]
        quantities = _remainder_to_last(accounts, total_qty, percents, 100)
        return [
            AllocatedAccount(
                account=account.account,
                qty=qty,
                net_money=qty * avg_px,
                percent=percent,
            )
            for account, qty, percent in zip(accounts, quantities, percents)
        ]


class FixedQuantityStrategy(AllocationStrategy):
    """Pass each account's quantity through unchanged."""

    def allocate(self, accounts, total_qty, avg_px):
        results = []
        for account in accounts:
            qty = account.qty or 0
            results.append(
                AllocatedAccount(
                    account=account.account, qty=qty, net_money=qty * avg_px
                )
            )
        return results


class AveragePriceStrategy(FixedQuantityStrategy):
    """Average-price allocation of a multi-fill block.

    Every account is priced at the block's average price, which is what
    the fixed-quantity computation already does.
    """


def default_strategies() -> Dict[AllocationMethod, AllocationStrategy]:
    return {
        AllocationMethod.PRO_RATA: ProRataStrategy(),
        AllocationMethod.PERCENT: PercentStrategy(),
        AllocationMethod.FIXED_QTY: FixedQuantityStrategy(),
        AllocationMethod.AVG_PRICE: AveragePriceStrategy(),
    }


def resolve_method(method: Union[AllocationMethod, str]) -> AllocationMethod:
    """Convert a method name to ``AllocationMethod``.

    Raises
    ------
    ValueError
        If ``method`` is not one of the four method names
    """
    if isinstance(method, AllocationMethod):
        return method
    try:
        return AllocationMethod(method)
    except ValueError:
        valid = [m.value for m in AllocationMethod]
        raise ValueError(
            f"Unknown allocation method: {method}. Valid methods are: {valid}"
        )


class AllocationEngine:
    """Computes account allocations for a filled order.

    Parameters
    ----------
    strategies : Optional[Dict[AllocationMethod, AllocationStrategy]]
        Custom strategy registry. If None, uses ``default_strategies()``.

    Notes
    -----
    The engine is stateless; one instance can be shared across threads.

    Shared setup for every method:

    - ``avg_px`` is the order's average price, else its limit price,
      else 0
    - ``total_qty`` is the order's cumulative filled quantity

    TradingContext
    --------------
    Allocation happens after execution. A block order is worked as one
    order and the fills are then booked to the underlying client or fund
    accounts. Rounding slack from pro-rata and percent splits always lands
    on the last account the trader listed, so the booked total matches
    the street-side fill exactly.

    Examples
    --------
    >>> engine = AllocationEngine()
    >>> result = engine.calculate(
    ...     AllocationMethod.PRO_RATA,
    ...     order,  # cum_qty=100, avg_px=10.0
    ...     [AllocationAccount("A", weight=1),
    ...      AllocationAccount("B", weight=1),
    ...      AllocationAccount("C", weight=1)],
    ... )
    >>> result.quantities
    [33, 33, 34]
    """

    def __init__(
        self,
        strategies: Optional[Dict[AllocationMethod, AllocationStrategy]] = None,
    ):
        self.strategies = strategies or default_strategies()

    def calculate(
        self,
        method: Union[AllocationMethod, str],
        order: Order,
        accounts: Sequence[AllocationAccount],
    ) -> AllocationResult:
        """Allocate ``order``'s filled quantity across ``accounts``.

        Parameters
        ----------
        method : AllocationMethod or str
            Allocation method or its name
        order : Order
            Order snapshot; only ``cum_qty``, ``avg_px`` and ``price`` are
            read
        accounts : Sequence[AllocationAccount]
            Target accounts in the order the remainder rule should use

        Returns
        -------
        AllocationResult
            Per-account results plus totals

        Raises
        ------
        ValueError
            If ``method`` is unknown or has no registered strategy
        """
        resolved = resolve_method(method)
        strategy = self.strategies.get(resolved)
        if strategy is None:
            raise ValueError(f"No strategy registered for {resolved.value}")

        avg_px = order.avg_px
        if avg_px is None:
            avg_px = order.price if order.price is not None else 0
        total_qty = order.cum_qty

        allocated = strategy.allocate(list(accounts), total_qty, avg_px)
        return AllocationResult(
            method=resolved,
            avg_px=avg_px,
            accounts=tuple(allocated),
            total_qty=sum(account.qty for account in allocated),
            total_net_money=sum(account.net_money for account in allocated),
        )


_default_engine = AllocationEngine()


def calculate_allocation(
    method: Union[AllocationMethod, str],
    order: Order,
    accounts: Sequence[AllocationAccount],
) -> AllocationResult:
    """Allocate with the default strategy set."""
    return _default_engine.calculate(method, order, accounts)
