"""Application services."""

from .trade_workflow import (
    MessageRecord,
    TradeWorkflowService,
    WorkflowOutcome,
    generate_id,
)

__all__ = [
    "MessageRecord",
    "TradeWorkflowService",
    "WorkflowOutcome",
    "generate_id",
]
