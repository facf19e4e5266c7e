"""Session relay WebSocket endpoint.

Participants connect to ``/ws?session_id=...&username=...&role=...`` and
send business events as ``{"type": ..., "data": {...}}`` frames. Each
event is run through the ``TradeWorkflowService`` and the resulting relay
events are broadcast to everyone in the session, the sender included.

Notes
-----
A frame that cannot be processed produces a single ``error`` frame to the
sender and nothing else; the connection stays open.

| Frame type             | Service call                          |
|------------------------|---------------------------------------|
| order.new              | ``submit_order``                      |
| execution.fill         | ``fill_order``                        |
| execution.reject       | ``reject_order``                      |
| order.cancel           | ``request_cancel``                    |
| order.cancel.accept    | ``accept_cancel``                     |
| order.replace          | ``request_replace``                   |
| order.replace.accept   | ``accept_replace``                    |
| allocation.instruction | ``create_allocation``                 |
| allocation.response    | ``respond_allocation``                |
| allocation.confirm     | ``confirm_allocation``                |
"""

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from ...constants.errors import ErrorCodes, ErrorMessages
from ...domain.participants import ParticipantRole
from ...infrastructure.messaging.connection_registry import (
    ClientConnection,
    ConnectionRegistry,
)
from ...infrastructure.messaging.relay_messages import (
    build_error,
    build_participant_event,
)
from ...services.trade_workflow import TradeWorkflowService, WorkflowOutcome
from ..dependencies import get_connection_registry, get_workflow_service
from ..errors import error_message
from ..models import (
    AllocationConfirmPayload,
    AllocationInstructionPayload,
    AllocationResponsePayload,
    FillPayload,
    NewOrderPayload,
    OrderRefPayload,
    RelayFrame,
    ReplacePayload,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["relay"])

EventHandler = Callable[
    [TradeWorkflowService, ClientConnection, Dict[str, Any]], WorkflowOutcome
]


def _new_order(service, client, data):
    payload = NewOrderPayload.model_validate(data)
    return service.submit_order(
        client.session_id,
        client.role,
        symbol=payload.symbol,
        side=payload.side,
        quantity=payload.quantity,
        order_type=payload.order_type,
        price=payload.price,
        asset_class=payload.asset_class,
        security_type=payload.security_type,
        currency_pair=payload.currency_pair,
        maturity_month_year=payload.maturity_month_year,
        strike_price=payload.strike_price,
        option_type=payload.option_type,
        underlying_symbol=payload.underlying_symbol,
    )


def _fill(service, client, data):
    payload = FillPayload.model_validate(data)
    return service.fill_order(
        client.session_id,
        client.role,
        payload.order_id,
        payload.fill_qty,
        payload.fill_px,
    )


def _reject(service, client, data):
    payload = OrderRefPayload.model_validate(data)
    return service.reject_order(client.session_id, client.role, payload.order_id)


def _cancel(service, client, data):
    payload = OrderRefPayload.model_validate(data)
    return service.request_cancel(
        client.session_id, client.role, payload.order_id
    )


def _cancel_accept(service, client, data):
    payload = OrderRefPayload.model_validate(data)
    return service.accept_cancel(client.session_id, client.role, payload.order_id)


def _replace(service, client, data):
    payload = ReplacePayload.model_validate(data)
    if payload.quantity is None:
        raise ValueError("Replace request needs a quantity")
    return service.request_replace(
        client.session_id,
        client.role,
        payload.order_id,
        payload.quantity,
        payload.price,
    )


def _replace_accept(service, client, data):
    payload = ReplacePayload.model_validate(data)
    return service.accept_replace(
        client.session_id,
        client.role,
        payload.order_id,
        quantity=payload.quantity,
        price=payload.price,
    )


def _allocation_instruction(service, client, data):
    payload = AllocationInstructionPayload.model_validate(data)
    return service.create_allocation(
        client.session_id,
        client.role,
        payload.order_id,
        payload.method,
        [account.to_domain() for account in payload.accounts],
    )


def _allocation_response(service, client, data):
    payload = AllocationResponsePayload.model_validate(data)
    return service.respond_allocation(
        client.session_id, client.role, payload.alloc_id, payload.accept
    )


def _allocation_confirm(service, client, data):
    payload = AllocationConfirmPayload.model_validate(data)
    return service.confirm_allocation(
        client.session_id, client.role, payload.alloc_id
    )


@dataclass(frozen=True)
class EventRoute:
    """A frame handler and the error codes its failures map to."""

    handler: EventHandler
    not_found_code: str = ErrorCodes.ORDER_NOT_FOUND
    invalid_code: str = ErrorCodes.INVALID_REQUEST


EVENT_ROUTES: Dict[str, EventRoute] = {
    "order.new": EventRoute(_new_order, invalid_code=ErrorCodes.INVALID_MESSAGE),
    "execution.fill": EventRoute(_fill),
    "execution.reject": EventRoute(_reject),
    "order.cancel": EventRoute(_cancel),
    "order.cancel.accept": EventRoute(_cancel_accept),
    "order.replace": EventRoute(_replace),
    "order.replace.accept": EventRoute(_replace_accept),
    "allocation.instruction": EventRoute(
        _allocation_instruction, invalid_code=ErrorCodes.INVALID_ALLOCATION
    ),
    "allocation.response": EventRoute(
        _allocation_response, not_found_code=ErrorCodes.ALLOCATION_NOT_FOUND
    ),
    "allocation.confirm": EventRoute(
        _allocation_confirm, not_found_code=ErrorCodes.ALLOCATION_NOT_FOUND
    ),
}


async def handle_frame(
    text: str,
    client: ClientConnection,
    service: TradeWorkflowService,
    registry: ConnectionRegistry,
) -> Optional[WorkflowOutcome]:
    """Process one inbound frame and broadcast the result.

    Parameters
    ----------
    text : str
        Raw frame text as received
    client : ClientConnection
        Sender
    service : TradeWorkflowService
        Workflow service that owns session state
    registry : ConnectionRegistry
        Registry used for broadcasting and error replies

    Returns
    -------
    Optional[WorkflowOutcome]
        The outcome, or None when an error frame was sent instead
    """
    route: Optional[EventRoute] = None
    try:
        frame = RelayFrame.model_validate(json.loads(text))
        route = EVENT_ROUTES.get(frame.type)
        if route is None:
            await registry.send_to_client(
                client.client_id,
                build_error(
                    ErrorCodes.UNKNOWN_EVENT, ErrorMessages.unknown_event(frame.type)
                ),
            )
            return None
        outcome = route.handler(service, client, frame.data)
    except ValidationError as e:
        await _reply_error(registry, client, ErrorCodes.INVALID_REQUEST, str(e))
        return None
    except json.JSONDecodeError as e:
        await _reply_error(
            registry, client, ErrorCodes.INVALID_REQUEST, f"Invalid JSON: {e}"
        )
        return None
    except KeyError as e:
        code = route.not_found_code if route else ErrorCodes.INVALID_REQUEST
        await _reply_error(registry, client, code, error_message(e))
        return None
    except ValueError as e:
        code = route.invalid_code if route else ErrorCodes.INVALID_REQUEST
        await _reply_error(registry, client, code, error_message(e))
        return None

    for event in outcome.events:
        await registry.broadcast(client.session_id, event)
    return outcome


async def _reply_error(
    registry: ConnectionRegistry, client: ClientConnection, code: str, message: str
):
    logger.warning(f"Relay error for {client.username} ({code}): {message}")
    await registry.send_to_client(client.client_id, build_error(code, message))


@router.websocket("/ws")
async def relay_endpoint(
    websocket: WebSocket,
    session_id: str,
    username: str,
    role: str,
    registry: ConnectionRegistry = Depends(get_connection_registry),
    service: TradeWorkflowService = Depends(get_workflow_service),
):
    """Join a simulation session and relay its events.

    Parameters
    ----------
    websocket : WebSocket
        The WebSocket connection instance from FastAPI
    session_id : str
        Session to join (query parameter)
    username : str
        Display name (query parameter)
    role : str
        ``Trader``, ``Broker`` or ``Custodian`` (query parameter)

    Notes
    -----
    Connection lifecycle:

    1. Validate the role, closing with 1008 if unknown
    2. Register with the ConnectionRegistry
    3. Announce ``participant.joined`` to the rest of the session
    4. Process frames until the client disconnects
    5. Unregister and announce ``participant.left``, however the loop ends
    """
    try:
        participant_role = ParticipantRole(role)
    except ValueError:
        await websocket.close(code=1008, reason=f"Invalid role: {role}")
        return

    client = ClientConnection(
        client_id=str(uuid.uuid4()),
        session_id=session_id,
        username=username,
        role=participant_role,
    )
    if not await registry.connect(websocket, client):
        return

    await registry.broadcast(
        session_id,
        build_participant_event(True, client.client_id, username, participant_role),
        exclude=client.client_id,
    )

    try:
        while True:
            text = await websocket.receive_text()
            await handle_frame(text, client, service, registry)
    except WebSocketDisconnect:
        logger.debug(f"Client {client.client_id} closed the relay socket")
    finally:
        await registry.disconnect(client.client_id)
        await registry.broadcast(
            session_id,
            build_participant_event(
                False, client.client_id, username, participant_role
            ),
        )
