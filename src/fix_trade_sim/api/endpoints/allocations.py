"""Allocation calculator endpoints.

These let the trader preview an allocation before sending the
instruction. Nothing is stored.
"""

from datetime import datetime

from fastapi import APIRouter, Depends

from ...constants.errors import ErrorCodes
from ...domain.allocation.engine import calculate_allocation
from ...domain.fix.tags import OrderType
from ...domain.orders.models import Order
from ...domain.validation.allocation_validator import validate_allocation
from ...infrastructure.config.models import AllocationConfig
from ..dependencies import get_allocation_config
from ..errors import to_http_exception
from ..models import (
    AllocationCalculateRequest,
    AllocationValidateRequest,
    ApiResponse,
)

router = APIRouter(prefix="/allocations", tags=["allocations"])


@router.post("/calculate", response_model=ApiResponse)
async def calculate(request: AllocationCalculateRequest):
    """Run the allocation engine on an order snapshot.

    Returns
    -------
    ApiResponse
        ``data`` holds the per-account quantities and net money

    Raises
    ------
    HTTPException
        400 if the snapshot is inconsistent (``cum_qty`` above
        ``quantity``)
    """
    snapshot = request.order
    try:
        order = Order(
            cl_ord_id="preview",
            symbol=snapshot.symbol,
            side=snapshot.side,
            quantity=snapshot.quantity,
            order_type=OrderType.LIMIT,
            price=snapshot.price,
            cum_qty=snapshot.cum_qty,
            avg_px=snapshot.avg_px,
        )
        result = calculate_allocation(
            request.method,
            order,
            [account.to_domain() for account in request.accounts],
        )
    except ValueError as e:
        raise to_http_exception(e, invalid_code=ErrorCodes.INVALID_ALLOCATION)

    return ApiResponse(
        success=True,
        request_id=f"req_{datetime.now().timestamp()}",
        data=result.to_dict(),
    )


@router.post("/validate", response_model=ApiResponse)
async def validate(
    request: AllocationValidateRequest,
    allocation_config: AllocationConfig = Depends(get_allocation_config),
):
    """Check an account list with the configured percent tolerance."""
    result = validate_allocation(
        request.method,
        [account.to_domain() for account in request.accounts],
        request.total_qty,
        tolerance=allocation_config.percent_tolerance,
    )
    return ApiResponse(
        success=True,
        request_id=f"req_{datetime.now().timestamp()}",
        data=result.to_dict(),
    )
