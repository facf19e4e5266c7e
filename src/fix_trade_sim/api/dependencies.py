"""FastAPI dependency injection functions for service layer access.

All dependencies are created during application startup, stored on
``app.state`` and handed to endpoints through FastAPI's ``Depends``.
Tests can swap any of them by assigning a different object to the state
attribute.

Examples
--------
>>> @router.get("/sessions/{session_id}/orders")
... async def list_orders(
...     session_id: str,
...     service: TradeWorkflowService = Depends(get_workflow_service),
... ):
...     return [order.to_dict() for order in service.get_orders(session_id)]
"""

from fastapi import WebSocket
from fastapi.requests import HTTPConnection

from ..infrastructure.config.models import AllocationConfig, FixConfig
from ..infrastructure.messaging.connection_registry import ConnectionRegistry
from ..services.trade_workflow import TradeWorkflowService


def get_workflow_service(connection: HTTPConnection) -> TradeWorkflowService:
    """Dependency to get the trade workflow service from app state.

    Raises
    ------
    AttributeError
        If the service is not found in app state
    """
    return connection.app.state.workflow_service


def get_fix_config(connection: HTTPConnection) -> FixConfig:
    """Dependency to get the FIX codec configuration from app state."""
    return connection.app.state.fix_config


def get_allocation_config(connection: HTTPConnection) -> AllocationConfig:
    """Dependency to get the allocation configuration from app state."""
    return connection.app.state.allocation_config


def get_connection_registry(websocket: WebSocket) -> ConnectionRegistry:
    """Dependency to get the relay connection registry from app state."""
    return websocket.app.state.connection_registry
