"""Pre-trade checks for an allocation instruction.

The allocation engine applies whatever it is given. This validator is the
gate that runs before it: it reports every problem with the account list
so the trader can fix them in one pass.
"""

from typing import List, Sequence, Union

from ...constants.errors import ErrorMessages
from ..allocation.engine import resolve_method
from ..allocation.models import AllocationAccount, AllocationMethod
from .result import ValidationResult

DEFAULT_PERCENT_TOLERANCE = 0.01


def validate_allocation(
    method: Union[AllocationMethod, str],
    accounts: Sequence[AllocationAccount],
    total_qty: float,
    tolerance: float = DEFAULT_PERCENT_TOLERANCE,
) -> ValidationResult:
    """Check an account list against the chosen allocation method.

    Parameters
    ----------
    method : AllocationMethod or str
        Allocation method or its name
    accounts : Sequence[AllocationAccount]
        Target accounts as supplied by the caller
    total_qty : float
        Filled quantity available for allocation
    tolerance : float, default=0.01
        Allowed distance of the percent total from 100

    Returns
    -------
    ValidationResult
        All violations found. An empty account list is reported alone.

    Raises
    ------
    ValueError
        If ``method`` is not a known allocation method

    Notes
    -----
    Rules by method:

    - Every method: at least one account, no blank account ids
    - PERCENT: percentages sum to 100 within ``tolerance``
    - FIXED_QTY, AVG_PRICE: quantities sum to at most ``total_qty``

    PRO_RATA weights need no total check; the engine normalizes them.

    Examples
    --------
    >>> result = validate_allocation(
    ...     "Percent",
    ...     [AllocationAccount("A", percent=60), AllocationAccount("B", percent=30)],
    ...     100,
    ... )
    >>> result.errors
    ['Total percentage must equal 100% (got 90.00%)']
    """
    resolved = resolve_method(method)

    if not accounts:
        return ValidationResult.from_errors([ErrorMessages.EMPTY_ACCOUNT_LIST])

    errors: List[str] = []
    for account in accounts:
        if not (account.account or "").strip():
            errors.append(ErrorMessages.EMPTY_ACCOUNT_ID)

    if resolved is AllocationMethod.PERCENT:
        total_percent = sum(account.percent or 0 for account in accounts)
        if abs(total_percent - 100) > tolerance:
            errors.append(ErrorMessages.percent_total(total_percent))

    elif resolved in (AllocationMethod.FIXED_QTY, AllocationMethod.AVG_PRICE):
        allocated = sum(account.qty or 0 for account in accounts)
        if allocated > total_qty:
            errors.append(ErrorMessages.over_allocated(allocated, total_qty))

    return ValidationResult.from_errors(errors)
