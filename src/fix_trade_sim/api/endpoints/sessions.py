"""Session state query endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends

from ...services.trade_workflow import TradeWorkflowService
from ..dependencies import get_workflow_service
from ..models import ApiResponse

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("/{session_id}/orders", response_model=ApiResponse)
async def list_orders(
    session_id: str,
    service: TradeWorkflowService = Depends(get_workflow_service),
):
    """Current snapshot of every order in the session."""
    orders = service.get_orders(session_id)
    return ApiResponse(
        success=True,
        request_id=f"req_{datetime.now().timestamp()}",
        data={"orders": [order.to_dict() for order in orders]},
    )


@router.get("/{session_id}/messages", response_model=ApiResponse)
async def list_messages(
    session_id: str,
    service: TradeWorkflowService = Depends(get_workflow_service),
):
    """The session's FIX message log, oldest first."""
    messages = service.get_messages(session_id)
    return ApiResponse(
        success=True,
        request_id=f"req_{datetime.now().timestamp()}",
        data={"messages": [record.to_dict() for record in messages]},
    )


@router.get("/{session_id}/allocations", response_model=ApiResponse)
async def list_allocations(
    session_id: str,
    service: TradeWorkflowService = Depends(get_workflow_service),
):
    """Every allocation in the session with its current status."""
    allocations = service.get_allocations(session_id)
    return ApiResponse(
        success=True,
        request_id=f"req_{datetime.now().timestamp()}",
        data={"allocations": [allocation.to_dict() for allocation in allocations]},
    )
