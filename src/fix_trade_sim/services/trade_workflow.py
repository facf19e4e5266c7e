"""Trade workflow service.

This module turns the business events of a simulation session into
domain state changes and FIX messages. Each event follows the same steps:

1. Look up the order or allocation the event refers to
2. Compute the new state with the pure domain functions
3. Build the FIX message and run it through the message validator
4. Store the new state and append the message to the session log
5. Return the relay events that should be broadcast to the session

The service owns all session state and performs no I/O; broadcasting
the returned events is the caller's job.

Notes
-----
State lives in memory for the lifetime of the process.
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..constants.errors import ErrorMessages
from ..domain.allocation.engine import AllocationEngine, resolve_method
from ..domain.allocation.models import (
    Allocation,
    AllocationAccount,
    AllocationMethod,
    AllocationStatus,
)
from ..domain.fix.builders import (
    AllocationInstructionParams,
    AllocationReportParams,
    ConfirmationParams,
    ExecutionReportParams,
    NewOrderSingleParams,
    OrderCancelReplaceRequestParams,
    OrderCancelRequestParams,
    build_allocation_instruction,
    build_allocation_report,
    build_confirmation,
    build_execution_report,
    build_new_order_single,
    build_order_cancel_replace_request,
    build_order_cancel_request,
)
from ..domain.fix.message import FixMessage
from ..domain.fix.tags import AssetClass, ExecType, OrderStatus, OrderType, Side
from ..domain.orders.fills import (
    apply_cancel_accept,
    apply_fill,
    apply_reject,
    apply_replace_accept,
    mark_pending,
)
from ..domain.orders.models import Order, OrderUpdate
from ..domain.participants import ParticipantRole
from ..domain.validation.allocation_validator import validate_allocation
from ..domain.validation.fix_validator import FixMessageValidator
from ..domain.validation.result import ValidationResult
from ..infrastructure.config.models import AllocationConfig, FixConfig
from ..infrastructure.messaging.relay_messages import (
    RelayEvent,
    RelayMessageType,
    build_allocation_event,
    build_execution_event,
    build_message_event,
    build_order_event,
)

logger = logging.getLogger(__name__)


def generate_id(prefix: str) -> str:
    """Return an id of the form ``PREFIX-<epoch-ms>-<8 hex>``.

    Examples
    --------
    >>> generate_id("ORD").startswith("ORD-")
    True
    """
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class MessageRecord:
    """One entry in a session's FIX message log.

    Parameters
    ----------
    message_id : str
        Log entry id
    session_id : str
        Session the message belongs to
    sender : ParticipantRole
        Desk whose action produced the message
    message : FixMessage
        The framed message
    validation : ValidationResult
        Validator outcome at the time the message was built
    timestamp : datetime
        When the message was logged (UTC)
    """

    message_id: str
    session_id: str
    sender: ParticipantRole
    message: FixMessage
    validation: ValidationResult
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def to_dict(self) -> dict:
        data = {
            "id": self.message_id,
            "session_id": self.session_id,
            "sender": self.sender.value,
            "timestamp": self.timestamp.isoformat(),
            "validation": self.validation.to_dict(),
        }
        data.update(self.message.to_dict())
        return data


@dataclass(frozen=True)
class WorkflowOutcome:
    """What a business event produced.

    Attributes
    ----------
    message : FixMessage
        Message generated for the event
    validation : ValidationResult
        Validator outcome for ``message``
    events : List[RelayEvent]
        Relay events to broadcast, in order
    order : Optional[Order]
        Order snapshot after the event, for order events
    allocation : Optional[Allocation]
        Allocation after the event, for allocation events
    """

    message: FixMessage
    validation: ValidationResult
    events: List[RelayEvent] = field(default_factory=list)
    order: Optional[Order] = None
    allocation: Optional[Allocation] = None


class TradeWorkflowService:
    """Runs the Trader / Broker / Custodian workflow for every session.

    Parameters
    ----------
    fix_config : Optional[FixConfig]
        Codec settings; the begin string is passed to every builder
    allocation_config : Optional[AllocationConfig]
        Percent tolerance for allocation validation
    engine : Optional[AllocationEngine]
        Allocation engine. If None, a default engine is created.
    validator : Optional[FixMessageValidator]
        Message validator. If None, a default validator is created.

    Attributes
    ----------
    orders : Dict[str, Order]
        Latest snapshot per order id
    allocations : Dict[str, Allocation]
        Latest state per allocation id
    messages : Dict[str, List[MessageRecord]]
        FIX message log per session
    pending_replaces : Dict[str, Tuple[float, Optional[float]]]
        Requested (quantity, price) per order awaiting replace acceptance
    _lock : threading.Lock
        Serializes every event so no event reads a stale snapshot

    Notes
    -----
    Errors follow one rule:

    - ``KeyError``: the order or allocation id is unknown in the session
    - ``ValueError``: the event breaks a business rule (overfill, amending
      a closed order, invalid allocation, invalid new order message)

    Messages that fail validation for any other event are still logged,
    with their errors attached, and a warning is written.

    TradingContext
    --------------
    The flow mirrors a real buy-side workflow:

    - Trader sends a NewOrderSingle (D), cancels (F) or amends (G)
    - Broker answers with ExecutionReports (8) for fills, rejects,
      cancel and replace acknowledgements
    - Trader books the fills to accounts with an AllocationInstruction (J)
    - Broker accepts or rejects the allocation with an AllocationReport (AS)
    - Custodian confirms settlement with a Confirmation (AK)

    Examples
    --------
    >>> service = TradeWorkflowService()
    >>> outcome = service.submit_order(
    ...     "S1", ParticipantRole.TRADER, "AAPL", Side.BUY, 100,
    ...     OrderType.LIMIT, price=150.0,
    ... )
    >>> outcome.order.status
    <OrderStatus.NEW: 'New'>
    >>> outcome = service.fill_order(
    ...     "S1", ParticipantRole.BROKER, outcome.order.order_id, 40, 150.0
    ... )
    >>> outcome.order.leaves_qty
    60
    """

    def __init__(
        self,
        fix_config: Optional[FixConfig] = None,
        allocation_config: Optional[AllocationConfig] = None,
        engine: Optional[AllocationEngine] = None,
        validator: Optional[FixMessageValidator] = None,
    ):
        self.fix_config = fix_config or FixConfig()
        self.allocation_config = allocation_config or AllocationConfig()
        self.engine = engine or AllocationEngine()
        self.validator = validator or FixMessageValidator()

        self.orders: Dict[str, Order] = {}
        self.allocations: Dict[str, Allocation] = {}
        self.messages: Dict[str, List[MessageRecord]] = {}
        self.pending_replaces: Dict[str, Tuple[float, Optional[float]]] = {}
        self._lock = threading.Lock()

    # --- Queries ---

    def get_order(self, session_id: str, order_id: str) -> Order:
        """Return the order, or raise KeyError if not in the session."""
        with self._lock:
            return self._get_order(session_id, order_id)

    def get_allocation(self, session_id: str, alloc_id: str) -> Allocation:
        """Return the allocation, or raise KeyError if not in the session."""
        with self._lock:
            return self._get_allocation(session_id, alloc_id)

    def get_orders(self, session_id: str) -> List[Order]:
        with self._lock:
            return [
                order
                for order in self.orders.values()
                if order.session_id == session_id
            ]

    def get_allocations(self, session_id: str) -> List[Allocation]:
        with self._lock:
            return [
                allocation
                for allocation in self.allocations.values()
                if allocation.session_id == session_id
            ]

    def get_messages(self, session_id: str) -> List[MessageRecord]:
        with self._lock:
            return list(self.messages.get(session_id, []))

    # --- Trader order events ---

    def submit_order(
        self,
        session_id: str,
        role: ParticipantRole,
        symbol: str,
        side: Side,
        quantity: float,
        order_type: OrderType,
        price: Optional[float] = None,
        asset_class: AssetClass = AssetClass.EQUITY,
        security_type: Optional[str] = None,
        currency_pair: Optional[str] = None,
        maturity_month_year: Optional[str] = None,
        strike_price: Optional[float] = None,
        option_type: Optional[str] = None,
        underlying_symbol: Optional[str] = None,
    ) -> WorkflowOutcome:
        """Create an order and its NewOrderSingle (``order.new``).

        Parameters
        ----------
        session_id : str
            Session the order belongs to
        role : ParticipantRole
            Sender, normally the trader
        symbol, side, quantity, order_type, price
            Core order fields. ``price`` is dropped for market orders.
        asset_class : AssetClass
            Selects the instrument tags written on the message
        security_type, currency_pair, maturity_month_year, strike_price,
        option_type, underlying_symbol
            Optional instrument details, see ``NewOrderSingleParams``

        Returns
        -------
        WorkflowOutcome
            ``order.created`` and ``message.new`` events

        Raises
        ------
        ValueError
            If the quantity is not positive or the message fails
            validation. Nothing is stored in that case.
        """
        cl_ord_id = generate_id("ORD")
        if asset_class is AssetClass.FX and currency_pair:
            symbol = currency_pair

        order = Order(
            cl_ord_id=cl_ord_id,
            symbol=symbol,
            side=side,
            quantity=quantity,
            order_type=order_type,
            price=price,
            session_id=session_id,
            created_by=role.value,
        )
        message = build_new_order_single(
            NewOrderSingleParams(
                cl_ord_id=cl_ord_id,
                symbol=symbol,
                side=side,
                quantity=quantity,
                order_type=order_type,
                price=order.price,
                asset_class=asset_class,
                security_type=security_type,
                currency_pair=currency_pair,
                maturity_month_year=maturity_month_year,
                strike_price=strike_price,
                option_type=option_type,
                underlying_symbol=underlying_symbol,
            ),
            begin_string=self.fix_config.begin_string,
        )
        validation = self.validator.validate(message.msg_type, message.tags)
        if not validation.valid:
            logger.warning(
                f"Rejected new order {cl_ord_id} in session {session_id}: "
                f"{validation.errors}"
            )
            raise ValueError(
                f"Invalid NewOrderSingle: {'; '.join(validation.errors)}"
            )

        with self._lock:
            self.orders[order.order_id] = order
            record = self._record(session_id, role, message, validation)

        logger.info(
            f"Order {cl_ord_id} created: {side.value} {quantity} {symbol} "
            f"{order_type.value}"
        )
        return WorkflowOutcome(
            message=message,
            validation=validation,
            order=order,
            events=[
                build_order_event(RelayMessageType.ORDER_CREATED, order),
                self._message_event(record),
            ],
        )

    def request_cancel(
        self, session_id: str, role: ParticipantRole, order_id: str
    ) -> WorkflowOutcome:
        """Send an OrderCancelRequest (``order.cancel``).

        The order moves to PendingCancel until the broker answers.

        Raises
        ------
        KeyError
            If the order is unknown
        ValueError
            If the order is already closed
        """
        with self._lock:
            order = self._get_order(session_id, order_id)
            pending = mark_pending(order, OrderStatus.PENDING_CANCEL)
            message = build_order_cancel_request(
                OrderCancelRequestParams(
                    cl_ord_id=generate_id("CXLREQ"),
                    orig_cl_ord_id=order.cl_ord_id,
                    symbol=order.symbol,
                    side=order.side,
                ),
                begin_string=self.fix_config.begin_string,
            )
            validation = self._validate(message)
            self.orders[order_id] = pending
            record = self._record(session_id, role, message, validation)

        logger.info(f"Cancel requested for order {order.cl_ord_id}")
        return WorkflowOutcome(
            message=message,
            validation=validation,
            order=pending,
            events=[
                build_order_event(RelayMessageType.ORDER_CANCEL_PENDING, pending),
                self._message_event(record),
            ],
        )

    def request_replace(
        self,
        session_id: str,
        role: ParticipantRole,
        order_id: str,
        quantity: float,
        price: Optional[float] = None,
    ) -> WorkflowOutcome:
        """Send an OrderCancelReplaceRequest (``order.replace``).

        The order moves to PendingReplace and the requested quantity and
        price are remembered for the broker's acceptance.

        Raises
        ------
        KeyError
            If the order is unknown
        ValueError
            If the order is closed or ``quantity`` is not positive
        """
        if quantity <= 0:
            raise ValueError("Order quantity must be positive")

        with self._lock:
            order = self._get_order(session_id, order_id)
            pending = mark_pending(order, OrderStatus.PENDING_REPLACE)
            message = build_order_cancel_replace_request(
                OrderCancelReplaceRequestParams(
                    cl_ord_id=generate_id("RPLREQ"),
                    orig_cl_ord_id=order.cl_ord_id,
                    symbol=order.symbol,
                    side=order.side,
                    quantity=quantity,
                    order_type=order.order_type,
                    price=price,
                ),
                begin_string=self.fix_config.begin_string,
            )
            validation = self._validate(message)
            self.orders[order_id] = pending
            self.pending_replaces[order_id] = (quantity, price)
            record = self._record(session_id, role, message, validation)

        logger.info(
            f"Replace requested for order {order.cl_ord_id}: "
            f"quantity={quantity} price={price}"
        )
        event = RelayEvent(
            type=RelayMessageType.ORDER_REPLACE_PENDING,
            data={
                "order": pending.to_dict(),
                "new_quantity": quantity,
                "new_price": price,
            },
        )
        return WorkflowOutcome(
            message=message,
            validation=validation,
            order=pending,
            events=[event, self._message_event(record)],
        )

    # --- Broker execution events ---

    def fill_order(
        self,
        session_id: str,
        role: ParticipantRole,
        order_id: str,
        fill_qty: float,
        fill_px: float,
    ) -> WorkflowOutcome:
        """Execute a (partial) fill (``execution.fill``).

        Raises
        ------
        KeyError
            If the order is unknown
        ValueError
            If the order is closed, or the fill quantity or price is out
            of range
        """
        with self._lock:
            order = self._get_order(session_id, order_id)
            update = apply_fill(order, fill_qty, fill_px)
            return self._execute(session_id, role, order, update)

    def reject_order(
        self, session_id: str, role: ParticipantRole, order_id: str
    ) -> WorkflowOutcome:
        """Reject an open order (``execution.reject``)."""
        with self._lock:
            order = self._get_order(session_id, order_id)
            update = apply_reject(order)
            return self._execute(session_id, role, order, update)

    def accept_cancel(
        self, session_id: str, role: ParticipantRole, order_id: str
    ) -> WorkflowOutcome:
        """Accept a cancel request (``order.cancel.accept``)."""
        with self._lock:
            order = self._get_order(session_id, order_id)
            update = apply_cancel_accept(order)
            return self._execute(session_id, role, order, update)

    def accept_replace(
        self,
        session_id: str,
        role: ParticipantRole,
        order_id: str,
        quantity: Optional[float] = None,
        price: Optional[float] = None,
    ) -> WorkflowOutcome:
        """Accept an amend (``order.replace.accept``).

        Parameters
        ----------
        quantity : Optional[float]
            New order quantity. Defaults to the pending request's quantity.
        price : Optional[float]
            New price. Defaults to the pending request's price, then to
            the current price.

        Raises
        ------
        KeyError
            If the order is unknown
        ValueError
            If no quantity is known, the order is closed or the quantity
            is below the filled quantity
        """
        with self._lock:
            order = self._get_order(session_id, order_id)
            requested_qty, requested_px = self.pending_replaces.get(
                order_id, (None, None)
            )
            quantity = quantity if quantity is not None else requested_qty
            price = price if price is not None else requested_px
            if quantity is None:
                raise ValueError(
                    f"No replace quantity for order {order.cl_ord_id}"
                )

            update = apply_replace_accept(order, quantity, price)
            outcome = self._execute(
                session_id, role, order, update, amended_price=price
            )
            self.pending_replaces.pop(order_id, None)
            return outcome

    # --- Allocation events ---

    def create_allocation(
        self,
        session_id: str,
        role: ParticipantRole,
        order_id: str,
        method: Union[AllocationMethod, str],
        accounts: Sequence[AllocationAccount],
    ) -> WorkflowOutcome:
        """Allocate an order's fills and send the AllocationInstruction
        (``allocation.instruction``).

        Raises
        ------
        KeyError
            If the order is unknown
        ValueError
            If the method is unknown or the accounts fail allocation
            validation. Nothing is stored in that case.
        """
        resolved = resolve_method(method)

        with self._lock:
            order = self._get_order(session_id, order_id)
            check = validate_allocation(
                resolved,
                accounts,
                order.cum_qty,
                tolerance=self.allocation_config.percent_tolerance,
            )
            if not check.valid:
                logger.warning(
                    f"Rejected allocation for order {order.cl_ord_id}: "
                    f"{check.errors}"
                )
                raise ValueError(
                    f"Invalid allocation: {'; '.join(check.errors)}"
                )

            result = self.engine.calculate(resolved, order, accounts)
            allocation = Allocation(
                alloc_id=generate_id("ALLOC"),
                order_id=order.order_id,
                session_id=session_id,
                result=result,
            )
            message = build_allocation_instruction(
                AllocationInstructionParams(
                    alloc_id=allocation.alloc_id,
                    symbol=order.symbol,
                    side=order.side,
                    avg_px=result.avg_px,
                    no_allocs=len(result.accounts),
                    quantity=result.total_qty,
                ),
                begin_string=self.fix_config.begin_string,
            )
            validation = self._validate(message)
            self.allocations[allocation.alloc_id] = allocation
            record = self._record(session_id, role, message, validation)

        logger.info(
            f"Allocation {allocation.alloc_id} created for order "
            f"{order.cl_ord_id}: {resolved.value} across "
            f"{len(result.accounts)} accounts"
        )
        return WorkflowOutcome(
            message=message,
            validation=validation,
            allocation=allocation,
            events=[
                build_allocation_event(
                    RelayMessageType.ALLOCATION_CREATED, allocation
                ),
                self._message_event(record),
            ],
        )

    def respond_allocation(
        self,
        session_id: str,
        role: ParticipantRole,
        alloc_id: str,
        accept: bool,
    ) -> WorkflowOutcome:
        """Accept or reject a pending allocation (``allocation.response``).

        Raises
        ------
        KeyError
            If the allocation is unknown
        ValueError
            If the allocation is no longer pending
        """
        with self._lock:
            allocation = self._get_allocation(session_id, alloc_id)
            if allocation.status is not AllocationStatus.PENDING:
                raise ValueError(
                    f"Allocation {alloc_id} is {allocation.status.value}, "
                    f"not Pending"
                )
            updated = replace(
                allocation,
                status=(
                    AllocationStatus.ACCEPTED
                    if accept
                    else AllocationStatus.REJECTED
                ),
            )
            message = build_allocation_report(
                AllocationReportParams(
                    alloc_report_id=generate_id("REPT"),
                    accepted=accept,
                    avg_px=allocation.result.avg_px,
                    alloc_id=alloc_id,
                ),
                begin_string=self.fix_config.begin_string,
            )
            return self._allocation_step(session_id, role, updated, message)

    def confirm_allocation(
        self, session_id: str, role: ParticipantRole, alloc_id: str
    ) -> WorkflowOutcome:
        """Confirm an accepted allocation (``allocation.confirm``).

        Raises
        ------
        KeyError
            If the allocation is unknown
        ValueError
            If the allocation has not been accepted
        """
        with self._lock:
            allocation = self._get_allocation(session_id, alloc_id)
            if allocation.status is not AllocationStatus.ACCEPTED:
                raise ValueError(
                    f"Allocation {alloc_id} is {allocation.status.value}, "
                    f"not Accepted"
                )
            updated = replace(allocation, status=AllocationStatus.CONFIRMED)
            message = build_confirmation(
                ConfirmationParams(
                    confirm_id=generate_id("CONF"), alloc_id=alloc_id
                ),
                begin_string=self.fix_config.begin_string,
            )
            return self._allocation_step(session_id, role, updated, message)

    # --- Internal helpers (caller holds the lock) ---

    def _get_order(self, session_id: str, order_id: str) -> Order:
        order = self.orders.get(order_id)
        if order is None or order.session_id != session_id:
            raise KeyError(f"{ErrorMessages.ORDER_NOT_FOUND}: {order_id}")
        return order

    def _get_allocation(self, session_id: str, alloc_id: str) -> Allocation:
        allocation = self.allocations.get(alloc_id)
        if allocation is None or allocation.session_id != session_id:
            raise KeyError(f"{ErrorMessages.ALLOCATION_NOT_FOUND}: {alloc_id}")
        return allocation

    def _validate(self, message: FixMessage) -> ValidationResult:
        validation = self.validator.validate(message.msg_type, message.tags)
        if not validation.valid:
            logger.warning(
                f"{message.msg_type.display_name} failed validation: "
                f"{validation.errors}"
            )
        return validation

    def _record(
        self,
        session_id: str,
        role: ParticipantRole,
        message: FixMessage,
        validation: ValidationResult,
    ) -> MessageRecord:
        record = MessageRecord(
            message_id=str(uuid.uuid4()),
            session_id=session_id,
            sender=role,
            message=message,
            validation=validation,
        )
        self.messages.setdefault(session_id, []).append(record)
        logger.debug(f"[{session_id}] {role.value}: {message.display}")
        return record

    @staticmethod
    def _message_event(record: MessageRecord) -> RelayEvent:
        return build_message_event(
            message_id=record.message_id,
            session_id=record.session_id,
            sender=record.sender,
            message=record.message,
            validation=record.validation,
            timestamp=record.timestamp,
        )

    def _execute(
        self,
        session_id: str,
        role: ParticipantRole,
        order: Order,
        update: OrderUpdate,
        amended_price: Optional[float] = None,
    ) -> WorkflowOutcome:
        exec_id = generate_id("EXEC")
        replaced = update.exec_type is ExecType.REPLACED
        message = build_execution_report(
            ExecutionReportParams(
                cl_ord_id=order.cl_ord_id,
                exec_id=exec_id,
                exec_type=update.exec_type,
                order_status=update.status,
                symbol=order.symbol,
                side=order.side,
                last_qty=update.last_qty,
                last_px=update.last_px,
                cum_qty=update.cum_qty,
                avg_px=update.avg_px or 0,
                leaves_qty=update.leaves_qty,
                quantity=update.quantity if replaced else None,
                price=amended_price if replaced else None,
            ),
            begin_string=self.fix_config.begin_string,
        )
        validation = self._validate(message)
        updated = order.apply(update)
        self.orders[order.order_id] = updated
        if update.status.is_terminal:
            self.pending_replaces.pop(order.order_id, None)
        record = self._record(session_id, role, message, validation)

        logger.info(
            f"Execution {exec_id} on order {order.cl_ord_id}: "
            f"{update.exec_type.value} -> {update.status.value} "
            f"(cum={update.cum_qty}, leaves={update.leaves_qty})"
        )
        return WorkflowOutcome(
            message=message,
            validation=validation,
            order=updated,
            events=[
                build_execution_event(updated, exec_id, message),
                build_order_event(RelayMessageType.ORDER_UPDATED, updated),
                self._message_event(record),
            ],
        )

    def _allocation_step(
        self,
        session_id: str,
        role: ParticipantRole,
        allocation: Allocation,
        message: FixMessage,
    ) -> WorkflowOutcome:
        validation = self._validate(message)
        self.allocations[allocation.alloc_id] = allocation
        record = self._record(session_id, role, message, validation)
        logger.info(
            f"Allocation {allocation.alloc_id} is now {allocation.status.value}"
        )
        return WorkflowOutcome(
            message=message,
            validation=validation,
            allocation=allocation,
            events=[
                build_allocation_event(
                    RelayMessageType.ALLOCATION_UPDATED, allocation
                ),
                self._message_event(record),
            ],
        )
