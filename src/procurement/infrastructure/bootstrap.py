"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from procurement.application.show_order import ShowOrderHandler
from procurement.application.workflow_engine import WorkflowEngine
from procurement.infrastructure.audit.logging_audit_sink import LoggingAuditSink
from procurement.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from procurement.infrastructure.settings import Settings


def order_repository(settings: Settings | None = None) -> JsonOrderRepository:
    settings = settings or Settings()
    return JsonOrderRepository(settings.orders_file)


def workflow_engine(settings: Settings | None = None) -> WorkflowEngine:
    settings = settings or Settings()
    return WorkflowEngine(
        order_repository(settings),
        LoggingAuditSink(),
        tolerance=settings.receipt_tolerance,
        max_commit_attempts=settings.max_commit_attempts,
    )


def show_order_handler(engine: WorkflowEngine, settings: Settings | None = None) -> ShowOrderHandler:
    return ShowOrderHandler(order_repository(settings), engine.ledger)
